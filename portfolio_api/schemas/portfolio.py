"""Portfolio data schemas."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$"


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SocialLinks(CamelModel):
    """Social profile URLs."""

    github: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    medium: Optional[str] = None
    website: Optional[str] = None


class PersonalInfo(CamelModel):
    """Identity block shown in the hero section."""

    name: str = ""
    title: str = ""
    email: str = ""
    phone: Optional[str] = None
    location: Optional[str] = None
    profile_image: Optional[str] = None
    social: SocialLinks = Field(default_factory=SocialLinks)


class About(CamelModel):
    summary: str = ""
    details: Optional[str] = None


class Education(CamelModel):
    degree: str = ""
    institution: str = ""
    start_date: str = ""
    end_date: Optional[str] = None
    description: Optional[str] = None


class Experience(CamelModel):
    position: str = ""
    company: str = ""
    start_date: str = ""
    end_date: Optional[str] = None
    description: str = ""


class Resume(CamelModel):
    skills: List[str] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    experience: List[Experience] = Field(default_factory=list)


class Project(CamelModel):
    title: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)
    category: str = "web"
    image: Optional[str] = None
    live_url: Optional[str] = None
    github_url: Optional[str] = None


class Contact(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class Theme(CamelModel):
    """Colour scheme injected into the generated stylesheet."""

    primary_color: str = Field("#3b82f6", pattern=HEX_COLOR_PATTERN)
    secondary_color: str = Field("#1f2937", pattern=HEX_COLOR_PATTERN)
    background_color: str = Field("#ffffff", pattern=HEX_COLOR_PATTERN)


class PortfolioData(CamelModel):
    """Everything the form wizard collects; every section defaults to empty."""

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    about: About = Field(default_factory=About)
    resume: Resume = Field(default_factory=Resume)
    projects: List[Project] = Field(default_factory=list)
    contact: Contact = Field(default_factory=Contact)
    theme: Theme = Field(default_factory=Theme)


class PortfolioGenerateResponse(CamelModel):
    """Schema for rendered portfolio files."""

    success: bool = True
    message: str = "Portfolio generated successfully"
    files: dict[str, str]
