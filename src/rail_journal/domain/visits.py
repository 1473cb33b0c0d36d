"""Domain models for visit records."""

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class VisitRecord(BaseModel):
    """A saved memory attached to one station.

    Field aliases match the persisted JSON layout, so a stored blob reads
    ``{"stationCode": ..., "visitedDate": ..., "imageData": ...}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    station_code: str = Field(alias="stationCode", min_length=1)
    visited_date: date = Field(alias="visitedDate")
    image_data: str | None = Field(default=None, alias="imageData")
    caption: str | None = None
    highlights: str | None = None
    good_food: str | None = Field(default=None, alias="goodFood")


@dataclass(frozen=True)
class Progress:
    """Visited versus total station counts."""

    visited: int
    total: int

    @property
    def percent(self) -> int:
        """Return the visited share as a rounded whole percentage."""
        if self.total <= 0:
            return 0
        return int(self.visited * 100 / self.total + 0.5)
