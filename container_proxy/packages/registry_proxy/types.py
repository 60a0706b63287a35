"""Registry proxy types and data structures.

Docker Registry HTTP API v2 wire bodies produced by the translation layer.
No dependencies on other container_proxy modules.
"""

from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, Field

REGISTRY_API_VERSION = "registry/2.0"


class ErrorCode(str, Enum):
    """Error codes defined by the Distribution specification."""

    BLOB_UNKNOWN = "BLOB_UNKNOWN"
    BLOB_UPLOAD_INVALID = "BLOB_UPLOAD_INVALID"
    BLOB_UPLOAD_UNKNOWN = "BLOB_UPLOAD_UNKNOWN"
    DIGEST_INVALID = "DIGEST_INVALID"
    MANIFEST_BLOB_UNKNOWN = "MANIFEST_BLOB_UNKNOWN"
    MANIFEST_INVALID = "MANIFEST_INVALID"
    MANIFEST_UNKNOWN = "MANIFEST_UNKNOWN"
    MANIFEST_UNVERIFIED = "MANIFEST_UNVERIFIED"
    NAME_INVALID = "NAME_INVALID"
    NAME_UNKNOWN = "NAME_UNKNOWN"
    SIZE_INVALID = "SIZE_INVALID"
    TAG_INVALID = "TAG_INVALID"
    UNAUTHORIZED = "UNAUTHORIZED"
    DENIED = "DENIED"
    UNSUPPORTED = "UNSUPPORTED"
    TOOMANYREQUESTS = "TOOMANYREQUESTS"
    UNKNOWN = "UNKNOWN"


class RegistryError(BaseModel):
    code: ErrorCode
    message: str
    detail: Optional[Any] = None


class ErrorEnvelope(BaseModel):
    errors: list[RegistryError] = Field(default_factory=list)


class CatalogResponse(BaseModel):
    repositories: list[str] = Field(default_factory=list)


class TagsListResponse(BaseModel):
    name: str
    tags: list[str] = Field(default_factory=list)


class TranslationResult(NamedTuple):
    """Status code and body of a translated registry response."""

    status_code: int
    content: BaseModel

    def to_dict(self) -> dict[str, Any]:
        # `detail` is optional on the wire
        return self.content.model_dump(mode="json", exclude_none=True)


def make_error(code: ErrorCode, message: str, detail: Any = None) -> ErrorEnvelope:
    return ErrorEnvelope(errors=[RegistryError(code=code, message=message, detail=detail)])
