"""
API response models
Pydantic response schemas
"""
from typing import Optional, Any, List, Dict
from pydantic import BaseModel, Field

# Attributes a caller may select with ?fields=
ITEM_FIELDS = ("id", "name", "relativePath", "size", "mtimeMs", "category", "downloadUrl", "rawUrl")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error code")
    message: Optional[str] = Field(None, description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Structured error payload")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field("ok", description="Service status")
    templates: int = Field(..., description="Number of indexed templates")
    root: str = Field(..., description="Templates root directory")


class RefreshResponse(BaseModel):
    """Index rebuild response"""
    status: str = Field("refreshed", description="Rebuild status")
    total: int = Field(..., description="Number of indexed templates")


class TemplateItem(BaseModel):
    """One template in a listing"""
    id: str = Field(..., description="Template id")
    name: str = Field(..., description="File name")
    relativePath: str = Field(..., description="Path from the templates root")
    size: int = Field(..., description="File size (bytes)")
    mtimeMs: float = Field(..., description="Last modification time (ms since epoch)")
    category: str = Field(..., description="Top-level directory")
    downloadUrl: str = Field(..., description="Attachment download URL")
    rawUrl: str = Field(..., description="Raw content URL")


class TemplateListResponse(BaseModel):
    """Paginated template listing"""
    total: int = Field(..., description="Number of matching templates")
    count: int = Field(..., description="Number of templates in this page")
    limit: int = Field(..., description="Effective page size")
    offset: int = Field(..., description="Effective offset")
    tokens: Optional[List[str]] = Field(None, description="Query tokens used for matching")
    simplifiedTo: Optional[str] = Field(None, description="Single token used when the full query matched nothing")
    items: List[Dict[str, Any]] = Field(default_factory=list, description="Template items")
