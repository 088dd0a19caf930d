"""
Part models for multipart uploads.
A PartRange is a planned byte span; a CompletedPart is proof it was stored.
"""
from pydantic import BaseModel, ConfigDict, Field


class PartRange(BaseModel):
    """Contiguous byte span of the source file."""
    model_config = ConfigDict(frozen=True)

    part_number: int = Field(..., ge=1, description="1-based part sequence number")
    offset: int = Field(..., ge=0, description="Start offset in the source")
    length: int = Field(..., gt=0, description="Number of bytes in the part")

    @property
    def end(self) -> int:
        return self.offset + self.length


class CompletedPart(BaseModel):
    """Part number and ETag returned by the storage service for a stored part."""
    model_config = ConfigDict(frozen=True)

    part_number: int = Field(..., ge=1)
    etag: str
