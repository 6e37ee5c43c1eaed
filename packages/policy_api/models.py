"""Pydantic models for API request/response schemas."""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Paginated list envelope."""

    count: int = Field(..., description="Total number of results")
    results: List[T] = Field(default_factory=list, description="Results on this page")


class TemplateCreateRequest(BaseModel):
    """Request model for creating a policy template."""

    name: str = Field(..., description="Template name")
    description: Optional[str] = Field(None, description="Free-text description")
    scope_type: str = Field(default="global", description="Scope the policy applies to")
    scope_value: Optional[str] = Field(None, description="Scope attribute value, e.g. a queue")
    is_active: bool = Field(default=True, description="Whether versions may be published")


class TemplateUpdateRequest(BaseModel):
    """Request model for patching a policy template."""

    name: Optional[str] = None
    description: Optional[str] = None
    scope_type: Optional[str] = None
    scope_value: Optional[str] = None
    is_active: Optional[bool] = None


class VersionCreateRequest(BaseModel):
    """Request model for creating a draft version."""

    template: str = Field(..., description="ID of the owning template")
    config: Dict[str, Any] = Field(default_factory=dict, description="Policy configuration")


class VersionUpdateRequest(BaseModel):
    """Request model for saving a draft version."""

    config: Dict[str, Any] = Field(..., description="Replacement policy configuration")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Error message")
    details: Optional[Any] = Field(None, description="Additional error details")
    request_id: Optional[str] = Field(None, description="Request ID of the failed call")
