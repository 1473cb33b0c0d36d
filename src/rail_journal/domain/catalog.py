"""Domain models for the station catalog."""

from pydantic import BaseModel, ConfigDict, Field


class Station(BaseModel):
    """A single rail station."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str


class Line(BaseModel):
    """An ordered sequence of stations on one rail line."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    color_class: str = Field(default="", alias="colorClass")
    stations: tuple[Station, ...]
