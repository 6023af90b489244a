"""
Air-gap protocol exception hierarchy for coldsign.

Every decoder and encoder in the package either returns a fully valid value
or raises exactly one of these typed errors. Nothing is retried internally;
the ``recoverable`` flag only tells the caller whether asking the user to
scan again can help.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class AirgapError(Exception):
    """Base exception for all air-gap protocol errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether re-scanning or re-submitting may succeed
        code: Stable machine-readable error code
    """

    code = "AirgapError"
    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


# ==================== Format Errors ====================


class FormatError(AirgapError):
    """Raised when a payload has a bad prelude, type tag, chain id or envelope."""

    code = "FormatError"
    recoverable = True  # usually a mis-scan or the wrong QR


class UnknownTokenError(FormatError):
    """Raised when a Bytewords token is not in the selected alphabet."""

    code = "UnknownToken"

    def __init__(self, token: str, **kwargs: Any) -> None:
        super().__init__(f"bytewords: unknown word {token!r}", **kwargs)
        self.token = token


class NotAUrError(FormatError):
    """Raised when text does not start with the ``ur:`` scheme."""

    code = "NotAUr"


class WrongUrTypeError(FormatError):
    """Raised when a UR carries a different type than the extractor expects."""

    code = "WrongUrType"

    def __init__(self, expected: str, actual: Optional[str], **kwargs: Any) -> None:
        super().__init__(f"expected ur:{expected}, got ur:{actual}", **kwargs)
        self.expected = expected
        self.actual = actual


# ==================== Truncation Errors ====================


class TruncatedError(AirgapError):
    """Raised when a buffer is shorter than a declared field demands."""

    code = "Truncated"
    recoverable = True


class TooShortError(TruncatedError):
    """Raised when a Bytewords payload cannot even hold its 4-byte checksum."""

    code = "TooShort"


# ==================== Integrity Errors ====================


class IntegrityError(AirgapError):
    """Raised when a checksum or a cryptographic binding does not match."""

    code = "IntegrityError"


class ChecksumMismatchError(IntegrityError):
    """Raised when the embedded Bytewords CRC32 does not match the payload."""

    code = "ChecksumMismatch"
    recoverable = True  # a damaged scan is the common cause


class EffectHashMismatchError(IntegrityError):
    """Raised when signatures were produced over a different transaction."""

    code = "EffectHashMismatch"


# ==================== Schema Errors ====================


class SchemaError(AirgapError):
    """Raised when decoded structure does not match the expected schema."""

    code = "SchemaError"


class UnsupportedTypeError(SchemaError):
    """Raised for CBOR major types or length encodings outside the supported subset."""

    code = "UnsupportedType"


class MissingFieldError(SchemaError):
    """Raised when a required record field is absent once decoding finishes."""

    code = "MissingField"

    def __init__(self, field_name: str, context: str = "", **kwargs: Any) -> None:
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}missing required field {field_name!r}", **kwargs)
        self.field_name = field_name


class InvalidPayloadError(SchemaError):
    """Raised when an embedded payload (JSON, UTF-8 text) cannot be parsed."""

    code = "InvalidPayload"


# ==================== Validation Errors ====================


class ValidationError(AirgapError):
    """Raised when well-formed data violates a protocol rule."""

    code = "ValidationError"


class BadEffectHashLengthError(ValidationError):
    """Raised when an effect hash is not exactly 64 bytes."""

    code = "BadEffectHashLength"

    def __init__(self, length: int, **kwargs: Any) -> None:
        super().__init__(f"effect hash must be 64 bytes, got {length}", **kwargs)
        self.length = length


class MissingRandomizerError(ValidationError):
    """Raised when a spend or vote action lacks a usable 32-byte randomizer."""

    code = "MissingRandomizer"

    def __init__(self, action_index: int, action_kind: str, **kwargs: Any) -> None:
        super().__init__(
            f"action {action_index} ({action_kind}) has no valid 32-byte randomizer",
            **kwargs,
        )
        self.action_index = action_index
        self.action_kind = action_kind


class SignatureCountMismatchError(ValidationError):
    """Raised when a signature list does not line up with the plan's actions."""

    code = "SignatureCountMismatch"
    kind = "signature"

    def __init__(self, expected: int, actual: int, **kwargs: Any) -> None:
        super().__init__(
            f"{self.kind} signature count mismatch: expected {expected}, got {actual}",
            **kwargs,
        )
        self.expected = expected
        self.actual = actual


class SpendCountMismatchError(SignatureCountMismatchError):
    """Raised when spend signatures do not match the plan's spend actions."""

    code = "SpendCountMismatch"
    kind = "spend"


class VoteCountMismatchError(SignatureCountMismatchError):
    """Raised when vote signatures do not match the plan's delegator-vote actions."""

    code = "VoteCountMismatch"
    kind = "vote"


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check whether asking the user to re-scan could resolve the error."""
    if isinstance(exc, AirgapError):
        return exc.recoverable
    return False


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, code, message and any details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, AirgapError):
        context["error_code"] = exc.code
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, MissingFieldError):
        context["field_name"] = exc.field_name

    if isinstance(exc, SignatureCountMismatchError):
        context["expected"] = exc.expected
        context["actual"] = exc.actual

    return context
