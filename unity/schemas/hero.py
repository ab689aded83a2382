"""Schemas for the heroes catalog."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class HeroIn(BaseModel):
    """Create/update body. birth_date is YYYY-MM-DD."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=10_000)
    image_url: str = Field(default="", max_length=2048)
    birth_date: date


class HeroOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    birth_date: date
    image_url: str
    created_at: datetime | None = None
