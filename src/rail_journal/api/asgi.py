"""ASGI entrypoint for the rail journal API."""

from rail_journal.api.app import create_app
from rail_journal.containers import build_container

app = create_app(build_container())
