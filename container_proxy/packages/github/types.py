"""GitHub Packages API records.

Only the fields the proxy reads are modelled. Everything is optional because
the API omits or nulls fields freely; callers decide what a missing field
means for them.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

PACKAGE_TYPE_CONTAINER = "container"


class GitHubModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PackageOwner(GitHubModel):
    login: Optional[str] = None
    id: Optional[int] = None
    type: Optional[str] = None


class Package(GitHubModel):
    id: Optional[int] = None
    name: Optional[str] = None
    package_type: Optional[str] = None
    visibility: Optional[str] = None
    url: Optional[str] = None
    html_url: Optional[str] = None
    owner: Optional[PackageOwner] = None


class ContainerMetadata(GitHubModel):
    tags: list[str] = Field(default_factory=list)


class PackageVersionMetadata(GitHubModel):
    package_type: Optional[str] = None
    container: Optional[ContainerMetadata] = None


class PackageVersion(GitHubModel):
    id: Optional[int] = None
    name: Optional[str] = None
    url: Optional[str] = None
    metadata: Optional[PackageVersionMetadata] = None


@dataclass
class PackageListOptions:
    """Query options for package listings.

    Attributes:
        package_type: Package ecosystem to list (e.g., "container")
        visibility: Optional visibility filter ("public", "private", "internal")
        per_page: Page size requested from the API, pages are followed until
                  the listing is exhausted
    """

    package_type: str = PACKAGE_TYPE_CONTAINER
    visibility: Optional[str] = None
    per_page: int = 100
