"""Data models."""

from tts_prep.models.document import (
    Chapter,
    DocumentError,
    DocumentMetadata,
    DocumentStatistics,
    DocumentStructure,
    ExtractionSummary,
    Paragraph,
    ParagraphType,
    ParseOptions,
    ParseResult,
    PerformanceStats,
    ProcessingMetrics,
    Sentence,
)
from tts_prep.models.encoding import (
    CharacterScriptAnalysis,
    ConversionResult,
    DiagnosticReport,
    EncodingAnalysis,
    EncodingValidation,
    RtlDetection,
)
from tts_prep.models.extraction import (
    DetectionResult,
    ExtractionMethod,
    Section,
)
from tts_prep.models.output import (
    ChapterMetadata,
    ChapterOutput,
    DocumentManifest,
)
from tts_prep.models.validation import (
    ManifestItem,
    MetadataEntry,
    Severity,
    SpineItem,
    ValidationConfig,
    ValidationLevel,
    ValidationResult,
)

__all__ = [
    # Document models
    "Sentence",
    "Paragraph",
    "ParagraphType",
    "Chapter",
    "DocumentMetadata",
    "DocumentStatistics",
    "DocumentStructure",
    "ExtractionMethod",
    "ExtractionSummary",
    "PerformanceStats",
    "ProcessingMetrics",
    # Extraction models
    "Section",
    "DetectionResult",
    # Parser contract
    "ParseOptions",
    "ParseResult",
    "DocumentError",
    # Encoding models
    "CharacterScriptAnalysis",
    "RtlDetection",
    "EncodingAnalysis",
    "EncodingValidation",
    "DiagnosticReport",
    "ConversionResult",
    # Validation models
    "ValidationLevel",
    "Severity",
    "ValidationConfig",
    "ValidationResult",
    "MetadataEntry",
    "SpineItem",
    "ManifestItem",
    # Output models
    "ChapterMetadata",
    "ChapterOutput",
    "DocumentManifest",
]
