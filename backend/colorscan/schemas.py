"""
colorscan Schemas
Pydantic models for per-image results and batch summaries.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class ColorRecord(BaseModel):
    """Dominant colors found for one input image."""
    identifier: str = Field(..., min_length=1, description="Image URL or path as read from the input list")
    colors: List[str] = Field(
        default_factory=list,
        description="Canonical color names, most dominant first; empty when the image was unavailable"
    )
    error: Optional[str] = Field(None, description="Why no colors were produced, if applicable")

    def to_fields(self) -> List[str]:
        """Fields of the delimited output line."""
        return [self.identifier, *self.colors]


class PaletteEntry(BaseModel):
    """Single cluster of a quantized image."""
    hex: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$", description="Hex color code in format #RRGGBB")
    rgb: List[int] = Field(..., min_length=3, max_length=3)
    name: str = Field(..., description="Nearest canonical color name")
    count: int = Field(..., ge=0, description="Pixels assigned to this cluster")
    ratio: float = Field(..., ge=0.0, le=1.0, description="Share of image pixels in this cluster")


class BatchSummary(BaseModel):
    """Outcome of one batch run."""
    total: int = Field(..., ge=0, description="Identifiers processed")
    succeeded: int = Field(..., ge=0, description="Images that produced a color list")
    failed: int = Field(..., ge=0, description="Images that could not be fetched or decoded")
    duration_ms: float = Field(..., ge=0.0)
    memory_mb: float = Field(0.0, ge=0.0, description="Process memory after the last image")
    memory_growth_mb: float = Field(0.0, description="Memory change over the run")
    output_path: Optional[str] = Field(None, description="Where records were written")
