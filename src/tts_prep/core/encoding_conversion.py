"""Best-effort encoding conversion with a fallback retry chain."""

import codecs
import logging

import chardet

from tts_prep.core.encoding import (
    calculate_encoding_confidence,
    detect_encoding,
    has_bom,
)
from tts_prep.models.encoding import ConversionResult, DecodedText

log = logging.getLogger(__name__)

# Labels that Python's codec registry does not know under the same name
CODEC_ALIASES = {
    "utf-8-bom": "utf-8-sig",
}

# Byte order marks, longest first so UTF-32LE is not mistaken for UTF-16LE
BYTE_ORDER_MARKS: list[tuple[bytes, str]] = [
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
]

CHARDET_MIN_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.5
DEFAULT_BYTE_FALLBACKS = [
    "utf-8",
    "gb18030",
    "big5",
    "shift_jis",
    "euc-kr",
    "windows-1252",
]


def normalize_codec_name(label: str) -> str:
    """Map an encoding label to Python's canonical codec name.

    Raises:
        LookupError: If no codec is registered for the label
    """
    label = label.strip().lower()
    return codecs.lookup(CODEC_ALIASES.get(label, label)).name


def _is_utf8_flavored(label: str) -> bool:
    return "utf-8" in label.lower() or "utf8" in label.lower()


def convert_text_encoding(text: str, from_encoding: str, to_encoding: str) -> str:
    """Convert text between two labels.

    Same-encoding conversion is a passthrough. A leading BOM is dropped
    when the source is UTF-8 flavoured.

    Raises:
        LookupError: If either label is not a known codec
        UnicodeEncodeError: If the text cannot be represented in the target
    """
    source = normalize_codec_name(from_encoding)
    target = normalize_codec_name(to_encoding)

    if source == target:
        return text

    converted = text
    if _is_utf8_flavored(from_encoding) and has_bom(converted):
        converted = converted[1:]

    # The round trip through the target codec must not lose characters
    converted.encode(target)
    return converted


def convert_text_encoding_with_fallback(
    text: str,
    from_encoding: str,
    to_encoding: str = "utf-8",
    *,
    attempt_auto_detection: bool = False,
    fallback_encodings: list[str] | None = None,
) -> ConversionResult:
    """Convert text, retrying fallback source encodings on failure.

    Never raises. Failure is reported through ``success`` and ``errors``,
    with the original text returned unchanged.

    Args:
        text: Decoded text to convert
        from_encoding: Source encoding label
        to_encoding: Target encoding label
        attempt_auto_detection: Detect the source encoding from the text
            instead of trusting from_encoding
        fallback_encodings: Source labels to retry, in order

    Returns:
        ConversionResult describing what happened
    """
    source = detect_encoding(text) if attempt_auto_detection else from_encoding
    errors: list[str] = []

    try:
        converted = convert_text_encoding(text, source, to_encoding)
        return ConversionResult(
            success=True,
            converted_text=converted,
            actual_from_encoding=source,
            actual_to_encoding=to_encoding,
            confidence=calculate_encoding_confidence(text),
        )
    except (LookupError, UnicodeError) as e:
        errors.append(f"Conversion failed: {e}")
        log.warning(f"Converting {source} to {to_encoding} failed: {e}")

    for fallback in fallback_encodings or []:
        try:
            converted = convert_text_encoding(text, fallback, to_encoding)
        except (LookupError, UnicodeError) as e:
            errors.append(f"Fallback conversion failed: {fallback}: {e}")
            continue

        log.info(f"Converted using fallback source encoding {fallback}")
        return ConversionResult(
            success=True,
            converted_text=converted,
            actual_from_encoding=fallback,
            actual_to_encoding=to_encoding,
            used_fallback=True,
            confidence=FALLBACK_CONFIDENCE,
            errors=errors,
        )

    return ConversionResult(
        success=False,
        converted_text=text,
        actual_from_encoding=source,
        actual_to_encoding=to_encoding,
        confidence=0.0,
        errors=errors,
    )


def decode_bytes(
    data: bytes, fallback_encodings: list[str] | None = None
) -> DecodedText:
    """Decode a byte buffer, trying BOMs, then chardet, then fallbacks.

    Falls back to lossy UTF-8 when nothing decodes cleanly.
    """
    for bom, codec in BYTE_ORDER_MARKS:
        if data.startswith(bom):
            try:
                return DecodedText(text=data.decode(codec), encoding=codec, confidence=1.0)
            except UnicodeDecodeError:
                break

    detected = chardet.detect(data)
    detected_encoding = detected.get("encoding")
    detected_confidence = detected.get("confidence") or 0.0
    if detected_encoding and detected_confidence > CHARDET_MIN_CONFIDENCE:
        try:
            return DecodedText(
                text=data.decode(detected_encoding),
                encoding=detected_encoding.lower(),
                confidence=detected_confidence,
            )
        except (LookupError, UnicodeDecodeError):
            log.debug(f"chardet suggested {detected_encoding} but it did not decode")

    for encoding in fallback_encodings or DEFAULT_BYTE_FALLBACKS:
        try:
            return DecodedText(
                text=data.decode(encoding),
                encoding=encoding,
                confidence=FALLBACK_CONFIDENCE,
            )
        except (LookupError, UnicodeDecodeError):
            continue

    log.warning("No encoding decoded cleanly; decoding as UTF-8 with replacement")
    return DecodedText(
        text=data.decode("utf-8", errors="replace"),
        encoding="utf-8",
        confidence=0.0,
        lossy=True,
    )
