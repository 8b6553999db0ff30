"""
Models for the OCR pipeline: image quality, recognition candidates and
parsed contact fields.
"""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from enum import Enum


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QualityReport(BaseModel):
    """Image quality measurements taken before preprocessing."""
    width: int
    height: int
    sharpness: float = Field(..., description="Variance of the Laplacian")
    brightness: float = Field(..., description="Mean gray level (0-255)")
    contrast: float = Field(..., description="Gray level standard deviation")
    noise: float = Field(..., description="Mean absolute residual after median blur")
    is_blurry: bool = False
    is_dark: bool = False
    is_bright: bool = False
    is_low_contrast: bool = False
    is_low_resolution: bool = False
    score: float = Field(..., ge=0.0, le=1.0, description="Overall quality (0-1)")


class OCRResult(BaseModel):
    """Raw output of one engine run."""
    text: str = ""
    confidence: float = Field(0.0, ge=0.0, le=100.0, description="Mean word confidence")
    word_count: int = 0
    config: str = Field(..., description="Engine configuration label")
    preset: str = Field(..., description="Preprocessing preset label")


class OCRCandidate(BaseModel):
    """An engine result with its fused score."""
    result: OCRResult
    score: float = Field(..., ge=0.0, le=1.0)
    text_quality: float = Field(0.0, ge=0.0, le=1.0)
    field_coverage: float = Field(0.0, ge=0.0, le=1.0)


class ParsedField(BaseModel):
    """A single extracted value with its confidence."""
    value: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    level: ConfidenceLevel
    source_line: Optional[int] = Field(None, description="Index of the OCR line it came from")

    class Config:
        use_enum_values = True


class ParsedCard(BaseModel):
    """Structured contact data guessed from OCR text."""
    fields: Dict[str, ParsedField] = Field(default_factory=dict)
    lines: List[str] = Field(default_factory=list)
    unmatched_lines: List[str] = Field(default_factory=list)

    def values(self) -> Dict[str, str]:
        """Flatten to field -> value for form filling."""
        return {name: parsed.value for name, parsed in self.fields.items()}

    def get(self, name: str) -> Optional[str]:
        parsed = self.fields.get(name)
        return parsed.value if parsed else None


class OCRResponse(BaseModel):
    """Full result of the OCR pipeline for one image."""
    text: str = ""
    parsed: ParsedCard = Field(default_factory=ParsedCard)
    quality: Optional[QualityReport] = None
    preset: Optional[str] = None
    config: Optional[str] = None
    score: float = 0.0
    candidates: List[OCRCandidate] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
