"""
Wire models for the Lexicon chunked upload API.

The server speaks camelCase JSON; these models validate responses and
expose them with Python field names.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InitResponse(_ApiModel):
    """Response to ``POST /api/media/chunked/init``."""
    upload_id: str = Field(..., alias="uploadId", min_length=1)
    total_chunks: int = Field(..., alias="totalChunks", ge=1)

    @field_validator("upload_id", mode="before")
    @classmethod
    def coerce_upload_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ChunkUploadResponse(_ApiModel):
    """Response to ``POST /api/media/chunked/upload/{uploadId}``."""
    accepted: bool = True
    is_complete: bool = Field(False, alias="isComplete")


class MissingChunksResponse(_ApiModel):
    """Response to ``GET /api/media/chunked/missing/{uploadId}``."""
    missing_chunks: List[int] = Field(..., alias="missingChunks")

    @field_validator("missing_chunks")
    @classmethod
    def validate_indices(cls, v: List[int]) -> List[int]:
        if any(index < 0 for index in v):
            raise ValueError("Chunk indices must be non-negative")
        return sorted(set(v))


class FinalizeResponse(_ApiModel):
    """Response to ``POST /api/media/chunked/finalize/{uploadId}``."""
    media_file: Dict[str, Any] = Field(default_factory=dict, alias="mediaFile")
