"""Data models for EPUB structural validation."""

from enum import Enum

from pydantic import BaseModel, Field


class ValidationLevel(str, Enum):
    """How many validation tiers to run."""

    BASIC = "basic"
    STANDARD = "standard"
    STRICT = "strict"


class Severity(str, Enum):
    """Severity of a validation error."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"


class ValidationError(BaseModel):
    """A structural problem found in an EPUB."""

    code: str
    message: str
    severity: Severity = Severity.ERROR
    fix: str | None = None
    location: str | None = None


class ValidationWarning(BaseModel):
    """A non-fatal observation about an EPUB."""

    code: str
    message: str
    suggestion: str | None = None
    location: str | None = None


class ValidationMetadata(BaseModel):
    """Structural facts collected while validating."""

    file_size: int = 0
    spine_item_count: int = 0
    manifest_item_count: int = 0
    has_navigation: bool = False
    has_metadata: bool = False
    epub_version: str | None = None
    title: str | None = None
    language: str | None = None


class ValidationResult(BaseModel):
    """Accumulator passed through every validation stage."""

    is_valid: bool = True
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    metadata: ValidationMetadata = Field(default_factory=ValidationMetadata)

    def add_error(
        self,
        code: str,
        message: str,
        severity: Severity = Severity.ERROR,
        fix: str | None = None,
        location: str | None = None,
    ) -> None:
        self.errors.append(
            ValidationError(
                code=code,
                message=message,
                severity=severity,
                fix=fix,
                location=location,
            )
        )

    def add_warning(
        self,
        code: str,
        message: str,
        suggestion: str | None = None,
        location: str | None = None,
    ) -> None:
        self.warnings.append(
            ValidationWarning(
                code=code, message=message, suggestion=suggestion, location=location
            )
        )

    def has_error(self, code: str) -> bool:
        return any(e.code == code for e in self.errors)

    def has_warning(self, code: str) -> bool:
        return any(w.code == code for w in self.warnings)

    @property
    def critical_count(self) -> int:
        return sum(1 for e in self.errors if e.severity == Severity.CRITICAL)


class ValidationConfig(BaseModel):
    """Knobs for a validation run."""

    level: ValidationLevel = ValidationLevel.STANDARD
    security_check: bool = True
    max_spine_items: int = 1000
    max_manifest_items: int = 2000
    min_title_length: int = 1
    max_title_length: int = 500


# =============================================================================
# EPUB container records
# =============================================================================


class MetadataEntry(BaseModel):
    """One Dublin Core style metadata entry (type is e.g. 'title', 'creator')."""

    type: str
    value: str


class SpineItem(BaseModel):
    """An entry in the EPUB reading order."""

    id: str = ""
    href: str = ""
    media_type: str | None = None
    linear: bool = True


class ManifestItem(BaseModel):
    """An entry in the EPUB manifest."""

    id: str = ""
    href: str = ""
    media_type: str = ""
    properties: list[str] = Field(default_factory=list)
