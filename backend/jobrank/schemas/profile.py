from pydantic import BaseModel, field_validator
from typing import Optional


class ProfileRow(BaseModel):
    display_name: Optional[str] = None
    headline: Optional[str] = None
    about: Optional[str] = None
    location: Optional[str] = None
    country_code: Optional[str] = None


class SkillRow(BaseModel):
    name: str
    level: Optional[int] = None
    years: Optional[float] = None


class ExperienceRow(BaseModel):
    title: str
    company: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    highlights: Optional[str] = None


class PreferencesRow(BaseModel):
    hourly_min: Optional[float] = None
    hourly_max: Optional[float] = None
    currency: Optional[str] = "USD"
    tightness: int = 3
    platforms: list[str] = []
    project_types: list[str] = []

    @field_validator("tightness", mode="before")
    @classmethod
    def _null_tightness(cls, value):
        return 3 if value is None else value

    @field_validator("platforms", "project_types", mode="before")
    @classmethod
    def _null_lists(cls, value):
        return [] if value is None else value
