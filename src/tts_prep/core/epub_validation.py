"""EPUB structural validation in basic, standard and strict tiers."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable

from tts_prep.errors import DocumentParseError
from tts_prep.models.validation import (
    ManifestItem,
    MetadataEntry,
    Severity,
    SpineItem,
    ValidationConfig,
    ValidationLevel,
    ValidationMetadata,
    ValidationResult,
)

log = logging.getLogger(__name__)

REQUIRED_METHODS = ("get_metadata", "get_spine_items", "get_manifest", "close")

LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")
MIN_LANGUAGE_LENGTH = 2
MAX_LANGUAGE_LENGTH = 5
MAX_AUTHOR_NAME_LENGTH = 200
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CONTENT_DOCUMENT_SUFFIXES = (".xhtml", ".html", ".htm")
NAVIGATION_MEDIA_TYPES = {"application/x-dtbncx+xml"}

DANGEROUS_MEDIA_TYPES = {
    "application/javascript",
    "application/x-javascript",
    "text/javascript",
    "application/x-executable",
    "application/x-msdownload",
}
EXTERNAL_HREF_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

DEFAULT_SAMPLE_SIZE = 10
LARGE_CONTENT_THRESHOLD = 1_000_000
MAX_TOTAL_ITEMS = 1000
MIN_EPUB_VERSION = 2.0
EPUB_VERSION_PATTERN = re.compile(r"epub\s*(\d+\.\d+)", re.IGNORECASE)


@dataclass
class ValidationContext:
    """Snapshot of the container read once before the stages run."""

    container: Any
    metadata: list[MetadataEntry]
    spine_items: list[SpineItem]
    manifest: dict[str, ManifestItem]
    config: ValidationConfig = field(default_factory=ValidationConfig)

    def entries(self, entry_type: str) -> list[MetadataEntry]:
        return [e for e in self.metadata if e.type == entry_type and e.value]


Stage = Callable[[ValidationContext, ValidationResult], None]


def create_initial_validation_result() -> ValidationResult:
    return ValidationResult(
        is_valid=True,
        errors=[],
        warnings=[],
        metadata=ValidationMetadata(),
    )


def determine_validity(result: ValidationResult) -> None:
    """Mark invalid when any critical or error severity entry exists."""
    if any(e.severity in (Severity.CRITICAL, Severity.ERROR) for e in result.errors):
        result.is_valid = False


def finalize_validation(result: ValidationResult) -> ValidationResult:
    if result.critical_count > 0:
        result.is_valid = False
    elif result.is_valid:
        determine_validity(result)
    return result


def handle_validation_error(
    error: Exception, metadata: ValidationMetadata | None = None
) -> ValidationResult:
    """Replace a partial result with a single critical entry for the failure."""
    result = create_initial_validation_result()
    if metadata is not None:
        result.metadata = metadata
    result.is_valid = False

    if isinstance(error, DocumentParseError):
        result.add_error(
            "PARSE_ERROR",
            error.message,
            Severity.CRITICAL,
            fix="Check EPUB file format and integrity",
        )
    else:
        result.add_error(
            "UNKNOWN_ERROR",
            str(error) or type(error).__name__,
            Severity.CRITICAL,
            fix="Check EPUB file format and integrity",
        )
    return result


def update_validation_metadata(
    result: ValidationResult, context: ValidationContext
) -> None:
    result.metadata.has_metadata = bool(context.metadata)
    result.metadata.spine_item_count = len(context.spine_items)
    result.metadata.manifest_item_count = len(context.manifest)
    result.metadata.file_size = int(getattr(context.container, "file_size", 0) or 0)


# =============================================================================
# Basic Tier
# =============================================================================


def check_required_methods(container: Any, result: ValidationResult) -> bool:
    """Record a critical error per missing container method. True if usable."""
    if container is None:
        result.add_error(
            "INVALID_EPUB_OBJECT",
            "EPUB object is missing or invalid",
            Severity.CRITICAL,
            fix="Pass an opened EPUB container",
        )
        result.is_valid = False
        return False

    usable = True
    for method in REQUIRED_METHODS:
        if not callable(getattr(container, method, None)):
            result.add_error(
                "MISSING_METHOD",
                f"Required EPUB method '{method}' is not available",
                Severity.CRITICAL,
            )
            usable = False

    if not usable:
        result.is_valid = False
    return usable


def validate_metadata_presence(
    context: ValidationContext, result: ValidationResult
) -> None:
    if not context.metadata:
        result.add_error(
            "MISSING_METADATA",
            "EPUB metadata is missing",
            Severity.CRITICAL,
            fix="Ensure EPUB contains proper metadata with title and identifier",
        )
        result.is_valid = False
        return

    validate_title(context, result)
    validate_identifier(context, result)
    validate_language(context, result)


def validate_title(context: ValidationContext, result: ValidationResult) -> None:
    titles = context.entries("title")
    if not titles:
        result.add_error(
            "MISSING_TITLE",
            "EPUB metadata is missing title",
            Severity.CRITICAL,
            fix="Add a title element to the EPUB metadata",
        )
        result.is_valid = False
        return

    title = titles[0].value
    result.metadata.title = title
    low, high = context.config.min_title_length, context.config.max_title_length
    if not low <= len(title) <= high:
        result.add_error(
            "INVALID_TITLE_LENGTH",
            f"Title length must be between {low} and {high} characters",
            Severity.ERROR,
            fix="Update title to meet length requirements",
        )
        result.is_valid = False


def validate_identifier(context: ValidationContext, result: ValidationResult) -> None:
    if not context.entries("identifier"):
        result.add_error(
            "MISSING_IDENTIFIER",
            "EPUB metadata is missing identifier",
            Severity.ERROR,
            fix="Add a unique identifier to the EPUB metadata",
        )
        result.is_valid = False


def validate_language(context: ValidationContext, result: ValidationResult) -> None:
    languages = context.entries("language")
    if not languages:
        result.add_error(
            "MISSING_LANGUAGE",
            "EPUB metadata is missing language",
            Severity.ERROR,
            fix="Add a language element to the EPUB metadata",
        )
        result.is_valid = False
        return

    language = languages[0].value
    if (
        not MIN_LANGUAGE_LENGTH <= len(language) <= MAX_LANGUAGE_LENGTH
        or not LANGUAGE_CODE_PATTERN.match(language)
    ):
        result.add_error(
            "INVALID_LANGUAGE_CODE",
            f"EPUB metadata contains invalid language code: {language}",
            Severity.ERROR,
            fix='Update language code to follow ISO 639-1 format (e.g., "en", "en-US")',
        )
        result.is_valid = False
    else:
        result.metadata.language = language


def validate_spine_presence(context: ValidationContext, result: ValidationResult) -> None:
    if not context.spine_items:
        result.add_error(
            "MISSING_SPINE",
            "EPUB spine is missing or empty",
            Severity.CRITICAL,
            fix="Ensure EPUB contains a proper reading order",
        )
        result.is_valid = False


def validate_manifest_presence(
    context: ValidationContext, result: ValidationResult
) -> None:
    if not context.manifest:
        result.add_error(
            "MISSING_MANIFEST",
            "EPUB manifest is missing or empty",
            Severity.CRITICAL,
            fix="Ensure EPUB contains a proper file manifest",
        )
        result.is_valid = False


# =============================================================================
# Standard Tier
# =============================================================================


def validate_authors(context: ValidationContext, result: ValidationResult) -> None:
    authors = context.entries("creator")
    if not authors:
        result.add_warning(
            "MISSING_AUTHOR",
            "Author information not found",
            suggestion="Add creator metadata for better organization",
        )
        return

    for index, author in enumerate(authors, start=1):
        if len(author.value) > MAX_AUTHOR_NAME_LENGTH:
            result.add_error(
                "AUTHOR_NAME_TOO_LONG",
                f"Author name {index} is too long "
                f"({len(author.value)} > {MAX_AUTHOR_NAME_LENGTH})",
                Severity.WARNING,
                fix="Shorten the author name",
            )


def _is_iso_date(value: str) -> bool:
    if not ISO_DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_dates(context: ValidationContext, result: ValidationResult) -> None:
    dates = context.entries("date")
    if not dates:
        result.add_warning(
            "MISSING_DATE",
            "Publication date not found",
            suggestion="Add publication date metadata",
        )
        return

    for entry in dates:
        # Full timestamps are accepted when their date part is valid
        if not _is_iso_date(entry.value[:10]):
            result.add_error(
                "INVALID_DATE_FORMAT",
                f"Invalid date format: {entry.value}",
                Severity.WARNING,
                fix="Use ISO 8601 date format (YYYY-MM-DD)",
            )


def validate_spine_items(context: ValidationContext, result: ValidationResult) -> None:
    limit = context.config.max_spine_items
    if len(context.spine_items) > limit:
        result.add_error(
            "TOO_MANY_SPINE_ITEMS",
            f"Spine has too many items ({len(context.spine_items)} > {limit})",
            Severity.ERROR,
            fix="Split the publication into several volumes",
        )

    for index, item in enumerate(context.spine_items):
        if not item.id:
            result.add_error(
                "MISSING_SPINE_ITEM_ID",
                f"Spine item {index} is missing ID attribute",
                Severity.WARNING,
                fix="Add idref attribute to itemref element",
            )
        if not item.href:
            result.add_error(
                "MISSING_SPINE_ITEM_HREF",
                f"Spine item {index} is missing href in manifest",
                Severity.WARNING,
                fix="Ensure item references valid manifest entry",
            )
        elif not item.href.lower().endswith(CONTENT_DOCUMENT_SUFFIXES):
            result.add_warning(
                "UNEXPECTED_SPINE_ITEM_TYPE",
                f'Spine item {index} href "{item.href}" may not be XHTML',
                suggestion="Use XHTML files for content documents",
                location=item.href,
            )


def validate_manifest_items(
    context: ValidationContext, result: ValidationResult
) -> None:
    limit = context.config.max_manifest_items
    if len(context.manifest) > limit:
        result.add_error(
            "TOO_MANY_MANIFEST_ITEMS",
            f"Manifest has too many items ({len(context.manifest)} > {limit})",
            Severity.ERROR,
            fix="Remove unused resources from the manifest",
        )

    for item_id, item in context.manifest.items():
        if not item.href:
            result.add_error(
                "MISSING_MANIFEST_ITEM_HREF",
                f'Manifest item "{item_id}" is missing href attribute',
                Severity.WARNING,
                fix="Add href attribute to manifest item",
                location=item_id,
            )
        if not item.media_type:
            result.add_error(
                "MISSING_MANIFEST_ITEM_MEDIA_TYPE",
                f'Manifest item "{item_id}" is missing media-type attribute',
                Severity.WARNING,
                fix="Add media-type attribute to manifest item",
                location=item_id,
            )


def validate_navigation(context: ValidationContext, result: ValidationResult) -> None:
    has_navigation = any(
        "nav" in item.properties or item.media_type in NAVIGATION_MEDIA_TYPES
        for item in context.manifest.values()
    )
    result.metadata.has_navigation = has_navigation
    if not has_navigation:
        result.add_warning(
            "MISSING_NAVIGATION",
            "No navigation document (nav or NCX) found",
            suggestion="Add a table of contents so chapters can be titled",
        )


# =============================================================================
# Strict Tier
# =============================================================================


def validate_security(context: ValidationContext, result: ValidationResult) -> None:
    if context.config.security_check is False:
        return

    for item_id, item in context.manifest.items():
        if item.media_type.lower() in DANGEROUS_MEDIA_TYPES:
            result.add_warning(
                "POTENTIALLY_DANGEROUS_FILE",
                f'Manifest item "{item_id}" has potentially dangerous '
                f'media type "{item.media_type}"',
                suggestion="Review file for security risks",
                location=item_id,
            )
        if EXTERNAL_HREF_PATTERN.match(item.href):
            result.add_warning(
                "EXTERNAL_RESOURCE",
                f'Manifest item "{item_id}" references external resource: {item.href}',
                suggestion="Consider including resources locally",
                location=item_id,
            )


def sample_spine_items(items: list[SpineItem], sample_size: int) -> list[SpineItem]:
    """Pick at most sample_size items spread evenly across the spine."""
    if not items:
        return []
    count = len(items)
    size = min(count, sample_size)
    return [items[i * count // size] for i in range(size)]


def validate_content_integrity(
    context: ValidationContext, result: ValidationResult
) -> None:
    # Sequential reads keep I/O pressure on the container bounded
    for item in sample_spine_items(context.spine_items, DEFAULT_SAMPLE_SIZE):
        try:
            content = context.container.read_xhtml_item_contents(item.id, "text")
        except Exception as e:
            log.warning(f"Could not read spine item {item.id}: {e}")
            result.add_error(
                "CONTENT_READ_ERROR",
                f'Cannot read content from spine item "{item.id}": {e}',
                Severity.ERROR,
                fix="Check that the content file exists and is well-formed",
                location=item.id,
            )
            continue

        if not content or not content.strip():
            result.add_warning(
                "EMPTY_CONTENT_ITEM",
                f'Spine item "{item.id}" appears to be empty',
                suggestion="Remove empty content or add meaningful text",
                location=item.id,
            )
        elif len(content) > LARGE_CONTENT_THRESHOLD:
            result.add_warning(
                "LARGE_CONTENT_ITEM",
                f'Spine item "{item.id}" is very large ({len(content)} characters)',
                suggestion="Consider splitting large content into smaller files",
                location=item.id,
            )


def validate_structure_size(
    context: ValidationContext, result: ValidationResult
) -> None:
    total_items = len(context.spine_items) + len(context.manifest)
    if total_items > MAX_TOTAL_ITEMS:
        result.add_warning(
            "LARGE_EPUB_STRUCTURE",
            f"EPUB has {total_items} total items, which may impact performance",
            suggestion="Consider optimizing EPUB structure",
        )


def extract_epub_version(metadata: list[MetadataEntry]) -> str | None:
    for entry in metadata:
        if entry.type == "format" and "epub" in entry.value.lower():
            match = EPUB_VERSION_PATTERN.search(entry.value)
            if match:
                return match.group(1)
    return None


def validate_epub_version(context: ValidationContext, result: ValidationResult) -> None:
    version = extract_epub_version(context.metadata)
    if version:
        result.metadata.epub_version = version
        if float(version) < MIN_EPUB_VERSION:
            result.add_warning(
                "OUTDATED_EPUB_VERSION",
                f"EPUB version {version} is outdated",
                suggestion="Consider upgrading to EPUB 2.0 or later for better compatibility",
            )
    else:
        result.add_warning(
            "UNKNOWN_EPUB_VERSION",
            "Could not determine EPUB version",
            suggestion="Specify EPUB version in metadata for better compatibility",
        )


# =============================================================================
# Tier Composition
# =============================================================================

BASIC_STAGES: list[Stage] = [
    validate_metadata_presence,
    validate_spine_presence,
    validate_manifest_presence,
]

STANDARD_STAGES: list[Stage] = [
    *BASIC_STAGES,
    validate_authors,
    validate_dates,
    validate_spine_items,
    validate_manifest_items,
    validate_navigation,
]

STRICT_STAGES: list[Stage] = [
    *STANDARD_STAGES,
    validate_security,
    validate_content_integrity,
    validate_structure_size,
    validate_epub_version,
]

STAGES_BY_LEVEL: dict[ValidationLevel, list[Stage]] = {
    ValidationLevel.BASIC: BASIC_STAGES,
    ValidationLevel.STANDARD: STANDARD_STAGES,
    ValidationLevel.STRICT: STRICT_STAGES,
}

# Stages that only look at one part of the package
METADATA_STAGES: frozenset[Stage] = frozenset(
    {validate_metadata_presence, validate_authors, validate_dates, validate_epub_version}
)
SPINE_STAGES: frozenset[Stage] = frozenset({validate_spine_presence, validate_spine_items})
MANIFEST_STAGES: frozenset[Stage] = frozenset(
    {validate_manifest_presence, validate_manifest_items, validate_navigation, validate_security}
)


def validate_epub_structure(
    container: Any, config: ValidationConfig | None = None
) -> ValidationResult:
    """Validate an EPUB container up to the configured tier.

    Each tier's stages run once, in order, against the same result.
    Never raises: a failure while reading the container replaces the
    partial result with a single critical PARSE_ERROR or UNKNOWN_ERROR.

    Args:
        container: Object exposing get_metadata, get_spine_items,
            get_manifest, read_xhtml_item_contents and close
        config: Validation settings, defaults to the standard tier

    Returns:
        Finalized ValidationResult
    """
    return _run_validation(container, config or ValidationConfig())


def _run_validation(
    container: Any, config: ValidationConfig, only: frozenset[Stage] | None = None
) -> ValidationResult:
    result = create_initial_validation_result()

    try:
        if not check_required_methods(container, result):
            return finalize_validation(result)

        context = ValidationContext(
            container=container,
            metadata=list(container.get_metadata() or []),
            spine_items=list(container.get_spine_items() or []),
            manifest=dict(container.get_manifest() or {}),
            config=config,
        )
        update_validation_metadata(result, context)

        for stage in STAGES_BY_LEVEL[config.level]:
            if only is None or stage in only:
                stage(context, result)

        finalize_validation(result)
        log.info(
            f"EPUB validation ({config.level.value}): valid={result.is_valid}, "
            f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
        )
        return result
    except Exception as e:
        log.warning(f"EPUB validation aborted: {e}")
        return handle_validation_error(e, result.metadata)


class _InMemoryContainer:
    """Container over already-extracted parts, for validating one piece."""

    def __init__(
        self,
        metadata: list[MetadataEntry] | None = None,
        spine_items: list[SpineItem] | None = None,
        manifest: dict[str, ManifestItem] | None = None,
    ):
        self._metadata = metadata or []
        self._spine_items = spine_items or []
        self._manifest = manifest or {}

    def get_metadata(self) -> list[MetadataEntry]:
        return self._metadata

    def get_spine_items(self) -> list[SpineItem]:
        return self._spine_items

    def get_manifest(self) -> dict[str, ManifestItem]:
        return self._manifest

    def read_xhtml_item_contents(self, item_id: str, mode: str = "text") -> str:
        raise DocumentParseError(f"No content available for item {item_id}")

    def close(self) -> None:
        pass


def validate_epub_metadata(
    metadata: list[MetadataEntry], config: ValidationConfig | None = None
) -> ValidationResult:
    """Run only the metadata checks of the configured tier."""
    return _run_validation(
        _InMemoryContainer(metadata=metadata), config or ValidationConfig(), METADATA_STAGES
    )


def validate_epub_spine(
    spine_items: list[SpineItem], config: ValidationConfig | None = None
) -> ValidationResult:
    return _run_validation(
        _InMemoryContainer(spine_items=spine_items), config or ValidationConfig(), SPINE_STAGES
    )


def validate_epub_manifest(
    manifest: dict[str, ManifestItem], config: ValidationConfig | None = None
) -> ValidationResult:
    return _run_validation(
        _InMemoryContainer(manifest=manifest), config or ValidationConfig(), MANIFEST_STAGES
    )
