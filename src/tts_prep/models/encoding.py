"""Data models for text encoding analysis and conversion."""

from typing import Literal

from pydantic import BaseModel, Field

EncodingFamily = Literal["utf", "legacy", "cjk", "ascii"]


class CharacterScriptAnalysis(BaseModel):
    """Share of CJK, right-to-left and Latin-1 characters in a text sample."""

    has_cjk: bool = False
    has_rtl: bool = False
    has_latin: bool = False
    cjk_ratio: float = 0.0
    rtl_ratio: float = 0.0
    latin_ratio: float = 0.0
    detected_scripts: list[str] = Field(default_factory=list)


class RtlDetection(BaseModel):
    """Right-to-left script detection."""

    is_rtl: bool = False
    rtl_ratio: float = 0.0
    has_arabic: bool = False
    has_hebrew: bool = False
    detected_scripts: list[str] = Field(default_factory=list)


class EncodingDetails(BaseModel):
    """Static properties of an encoding label."""

    is_multi_byte: bool = False
    is_legacy_encoding: bool = False
    supports_bom: bool = False
    endianness: Literal["le", "be"] | None = None
    encoding_family: EncodingFamily = "utf"


class EncodingAnalysis(BaseModel):
    """Full analysis of a text sample."""

    encoding: str
    confidence: float
    has_bom: bool = False
    is_ascii: bool = True
    non_ascii_ratio: float = 0.0
    script_analysis: CharacterScriptAnalysis
    rtl_detection: RtlDetection
    encoding_details: EncodingDetails


class EncodingValidation(BaseModel):
    """Cross-check of a detected encoding against the text it came from."""

    is_valid: bool = True
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ConversionValidation(BaseModel):
    """Sanity check of a conversion result."""

    is_valid: bool = True
    issues: list[str] = Field(default_factory=list)
    confidence: float = 1.0


class DiagnosticReport(BaseModel):
    """Everything known about a text sample's encoding, in one report."""

    encoding: str
    confidence: float
    script_analysis: CharacterScriptAnalysis
    rtl_detection: RtlDetection
    validation: EncodingValidation
    recommendations: list[str] = Field(default_factory=list)
    supported_encodings: list[str] = Field(default_factory=list)


class ConversionResult(BaseModel):
    """Outcome of an encoding conversion. Never raised, always returned."""

    success: bool
    converted_text: str
    actual_from_encoding: str
    actual_to_encoding: str
    used_fallback: bool = False
    confidence: float = 0.0
    errors: list[str] = Field(default_factory=list)


class DecodedText(BaseModel):
    """Text decoded from a byte buffer, with the codec that worked."""

    text: str
    encoding: str
    confidence: float
    lossy: bool = False
