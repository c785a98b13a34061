"""Application configuration models."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from tts_prep.models.document import ParseMode, ParseOptions
from tts_prep.models.validation import ValidationLevel

LogLevel = Literal["debug", "info", "warning", "error", "critical"]
TTSEngine = Literal["kokoro", "chatterbox"]
AudioFormat = Literal["mp3", "wav", "ogg"]


class LoggingConfig(BaseModel):
    """Log verbosity."""

    level: LogLevel = "info"

    class Config:
        extra = "forbid"

    @field_validator("level", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class TTSConfig(BaseModel):
    """Settings handed to the speech engine downstream."""

    engine: TTSEngine = "kokoro"
    voice: str | None = None
    rate: float = Field(default=1.0, ge=0.1, le=3.0)
    volume: float = Field(default=1.0, ge=0.0, le=2.0)
    quality: float = Field(default=0.8, ge=0.0, le=1.0)
    output_format: AudioFormat = "mp3"
    sample_rate: int = Field(default=22050, ge=8000, le=48000)

    class Config:
        extra = "forbid"


class ProcessingConfig(BaseModel):
    """Defaults for document parsing."""

    max_file_size_mb: int = Field(default=100, gt=0)
    chapter_sensitivity: float = Field(default=0.5, ge=0.0, le=1.0)
    strict_mode: bool = False
    words_per_minute: int = Field(default=150, gt=0)
    validation_level: ValidationLevel = ValidationLevel.STANDARD
    extract_media: bool = False
    preserve_html: bool = False

    class Config:
        extra = "forbid"


class CacheConfig(BaseModel):
    """Parsed-document cache."""

    enabled: bool = True
    directory: str = ".tts_prep_cache"

    class Config:
        extra = "forbid"

    @field_validator("directory")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cache directory must not be empty")
        return value


class AppConfig(BaseModel):
    """Complete application configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    class Config:
        extra = "forbid"

    def to_parse_options(self, mode: ParseMode = "tts", strict: bool | None = None) -> ParseOptions:
        """Parse options from the processing section, with CLI overrides."""
        processing = self.processing
        return ParseOptions(
            extract_media=processing.extract_media,
            preserve_html=processing.preserve_html,
            chapter_sensitivity=processing.chapter_sensitivity,
            strict_mode=processing.strict_mode if strict is None else strict,
            mode=mode,
            validation_level=processing.validation_level,
            words_per_minute=processing.words_per_minute,
        )
