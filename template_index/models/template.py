"""
Template file record held in the in-memory index
"""
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class FileRecord(BaseModel):
    """One indexed JSON template"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="URL-safe base64 of relative_path")
    name: str = Field(..., description="File base name")
    relative_path: str = Field(..., description="Path from the templates root, '/' separated")
    absolute_path: Path = Field(..., exclude=True, description="Root-confined path, internal use only")
    size: int = Field(0, description="File size (bytes)")
    mtime_ms: float = Field(0.0, description="Last modification time (ms since epoch)")
    category: str = Field("", description="First path segment, empty for root-level files")

    def __repr__(self):
        return f"<FileRecord {self.relative_path}>"
