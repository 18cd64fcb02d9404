"""Shared response shapes."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Base for request bodies: accepts snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_fields(self) -> dict:
        """Only the fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Human-readable message")
    code: str = Field(..., description="Machine-readable error code")
    request_id: str = Field(..., description="Request id (also in X-Request-ID)")


class PageInfo(BaseModel):
    page: int = Field(..., ge=1, description="1-based page number")
    limit: int = Field(..., ge=1, le=100, description="Page size")
    total: int = Field(..., ge=0, description="Total matching rows")


class OkResponse(BaseModel):
    ok: bool = Field(True, description="Operation succeeded")


class DeletedResponse(BaseModel):
    ok: bool = Field(True, description="Operation succeeded")
    deleted: int = Field(1, ge=0, description="Rows removed")
