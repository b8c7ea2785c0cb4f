from pydantic import BaseModel
from typing import Literal, Optional


ExperienceLevel = Literal["intern_new_grad", "entry", "mid", "senior", "lead", "director"]


class ScrapedSkill(BaseModel):
    name: str


class ScrapedExperience(BaseModel):
    title: str
    company: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    highlights: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None


class ScrapedEducation(BaseModel):
    school: str
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_year: Optional[str] = None
    end_year: Optional[str] = None


class ScrapedCertification(BaseModel):
    title: str
    issuer: Optional[str] = None
    date: Optional[str] = None


class ScrapedActivity(BaseModel):
    title: str
    link: Optional[str] = None
    interaction: Optional[str] = None


class ScrapedProfile(BaseModel):
    """Distilled profile record produced by the scraping provider."""

    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    headline: Optional[str] = None
    about: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    country_code: Optional[str] = None
    current_company: Optional[str] = None
    current_title: Optional[str] = None
    experience_level: Optional[ExperienceLevel] = None
    skills: list[ScrapedSkill] = []
    experiences: list[ScrapedExperience] = []
    educations: list[ScrapedEducation] = []
    certifications: list[ScrapedCertification] = []
    followers: Optional[int] = None
    connections: Optional[int] = None
    recommendations_count: Optional[int] = None
    languages: list[str] = []
    recent_activity: list[ScrapedActivity] = []
    linkedin_url: str = ""
    linkedin_id: Optional[str] = None
    scraped_at: str


class ScrapeResult(BaseModel):
    success: bool
    profile: Optional[ScrapedProfile] = None
    profiles: list[ScrapedProfile] = []
    error: Optional[str] = None
    snapshot_id: Optional[str] = None
