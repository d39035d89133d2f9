"""Repository and deployment schemas."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional

from pydantic import AfterValidator, AliasChoices, Field, model_validator

from portfolio_api.schemas.portfolio import CamelModel, PortfolioData


def _check_file_set(files: dict[str, str]) -> dict[str, str]:
    """Reject keys that are not plain relative paths."""
    if not files:
        raise ValueError("at least one file is required")
    for path in files:
        parts = path.split("/")
        if (
            not path
            or path.startswith("/")
            or any(part in ("", ".", "..") for part in parts)
        ):
            raise ValueError(f"invalid file path: {path!r}")
    return files


FileSet = Annotated[dict[str, str], AfterValidator(_check_file_set)]

# Name limits leave room for the "-xxxxxx" suffix added on a collision retry
NETLIFY_NAME_MAX = 63 - 7
VERCEL_NAME_MAX = 100 - 7


class Platform(str, Enum):
    """Hosting platforms a repository can be deployed to."""

    PAGES = "pages"
    NETLIFY = "netlify"
    VERCEL = "vercel"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Platform"]:
        # The web client calls GitHub Pages "github"
        if isinstance(value, str):
            if value.lower() == "github":
                return cls.PAGES
            for member in cls:
                if member.value == value.lower():
                    return member
        return None

    @property
    def label(self) -> str:
        return {"pages": "GitHub Pages", "netlify": "Netlify", "vercel": "Vercel"}[self.value]


class DeployStep(str, Enum):
    """Progress of a single deployment attempt."""

    IDLE = "idle"
    CREATING_REPO = "creating_repo"
    UPLOADING_FILES = "uploading_files"
    DEPLOYING_TO_PLATFORM = "deploying_to_platform"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RepositoryHandle(CamelModel):
    """A GitHub repository files are pushed to."""

    owner: str
    name: str
    default_branch: str = "main"
    html_url: str
    clone_url: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepositoryHandle":
        """Build a handle from a GitHub repository payload."""
        owner = (data.get("owner") or {}).get("login") or data["full_name"].split("/")[0]
        return cls(
            owner=owner,
            name=data["name"],
            default_branch=data.get("default_branch") or "main",
            html_url=data.get("html_url") or f"https://github.com/{owner}/{data['name']}",
            clone_url=data.get("clone_url") or f"https://github.com/{owner}/{data['name']}.git",
        )


class FileRecord(CamelModel):
    """Remote state of one path; ``sha`` is None when the path does not exist."""

    path: str
    sha: Optional[str] = None
    branch: str

    @property
    def exists(self) -> bool:
        return self.sha is not None


class UploadAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


class FileUploadOutcome(CamelModel):
    """Result of writing one file of a batch."""

    path: str
    action: UploadAction
    sha: Optional[str] = None
    error: Optional[str] = None


class DeploymentTarget(CamelModel):
    """A site or project serving a repository."""

    platform: Platform
    site_name: str
    site_id: Optional[str] = None
    live_url: str
    admin_url: str
    state: Optional[str] = None
    deployment_url: Optional[str] = None
    deployment_id: Optional[str] = None


class DeploymentStatus(CamelModel):
    """Most recent build as reported by the platform."""

    state: Optional[str] = None
    last_deploy_url: Optional[str] = None
    deploy_id: Optional[str] = None
    created_at: Optional[datetime] = None
    site_state: Optional[str] = None


class DeploymentResult(CamelModel):
    """Outcome of a full repository-plus-platform deployment."""

    success: bool
    step: DeployStep = DeployStep.IDLE
    platform: Optional[Platform] = None
    repo_url: Optional[str] = None
    clone_url: Optional[str] = None
    site_url: Optional[str] = None
    admin_url: Optional[str] = None
    error_message: Optional[str] = None
    files: List[FileUploadOutcome] = Field(default_factory=list)
    repository: Optional[RepositoryHandle] = None
    target: Optional[DeploymentTarget] = None


# Requests


class RepositoryFilesRequest(CamelModel):
    """Schema for pushing a file set to a repository."""

    owner: str = Field(..., min_length=1, validation_alias=AliasChoices("owner", "username"))
    repo_name: str = Field(..., min_length=1, max_length=100)
    files: FileSet = Field(
        ..., validation_alias=AliasChoices("files", "fileSet", "portfolioFiles")
    )
    token: str = Field(..., min_length=1, validation_alias=AliasChoices("token", "githubToken"))


class PagesSetupRequest(CamelModel):
    """Schema for enabling GitHub Pages on a repository."""

    owner: str = Field(..., min_length=1, validation_alias=AliasChoices("owner", "username"))
    repo_name: str = Field(..., min_length=1, max_length=100)
    token: str = Field(..., min_length=1, validation_alias=AliasChoices("token", "githubToken"))


class NetlifyDeployRequest(CamelModel):
    """Schema for deploying a repository to Netlify."""

    repo_url: str = Field(..., min_length=1)
    site_name: str = Field(..., min_length=1, max_length=NETLIFY_NAME_MAX)
    token: str = Field(..., min_length=1, validation_alias=AliasChoices("token", "netlifyToken"))
    site_id: Optional[str] = None
    branch: Optional[str] = None


class VercelDeployRequest(CamelModel):
    """Schema for deploying a repository to Vercel."""

    repo_url: str = Field(..., min_length=1)
    project_name: str = Field(..., min_length=1, max_length=VERCEL_NAME_MAX)
    token: str = Field(..., min_length=1, validation_alias=AliasChoices("token", "vercelToken"))
    project_id: Optional[str] = None
    branch: Optional[str] = None


class TokenValidationRequest(CamelModel):
    platform: Literal["github", "netlify", "vercel"]
    token: str = Field(..., min_length=1)


class DeployRequest(CamelModel):
    """Schema for the full render, push and deploy pipeline."""

    owner: str = Field(..., min_length=1, validation_alias=AliasChoices("owner", "username"))
    repo_name: str = Field(..., min_length=1, max_length=100)
    platform: Platform = Platform.PAGES
    github_token: str = Field(..., min_length=1)
    platform_token: Optional[str] = None
    site_name: Optional[str] = Field(None, min_length=1, max_length=NETLIFY_NAME_MAX)
    site_id: Optional[str] = None
    files: Optional[FileSet] = Field(
        None, validation_alias=AliasChoices("files", "fileSet", "portfolioFiles")
    )
    portfolio: Optional[PortfolioData] = None

    @model_validator(mode="after")
    def check_sources(self) -> "DeployRequest":
        if self.files is None and self.portfolio is None:
            raise ValueError("either files or portfolio is required")
        if self.platform is not Platform.PAGES and not self.platform_token:
            raise ValueError(f"platformToken is required to deploy to {self.platform.label}")
        return self


# Responses


class RepositoryResponse(CamelModel):
    success: bool = True
    message: str
    repo_url: str
    clone_url: str
    site_url: str
    repository: RepositoryHandle
    files: List[FileUploadOutcome]
    files_uploaded: int


class UpdateFilesResponse(CamelModel):
    success: bool = True
    message: str
    files: List[FileUploadOutcome]
    files_updated: int


class SiteDeployResponse(CamelModel):
    """Schema for a platform deploy; ``project*`` fields mirror ``site*`` for Vercel."""

    success: bool = True
    message: str
    site_url: str
    admin_url: str
    deployment_url: Optional[str] = None
    site_id: Optional[str] = None
    site_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    target: DeploymentTarget


class StatusResponse(CamelModel):
    success: bool = True
    status: DeploymentStatus


class UsernameCheckResponse(CamelModel):
    available: bool
    exists: bool


class TokenValidationResponse(CamelModel):
    success: bool = True
    valid: bool
    login: Optional[str] = None
    message: Optional[str] = None
