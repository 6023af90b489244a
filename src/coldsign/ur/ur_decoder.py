"""
Uniform Resource (UR) envelope decoding.

A single-part UR is ``ur:<type>/<bytewords-body>``. Multi-part URs
(``ur:<type>/<seq>-<count>/<body>``) are not supported: Zigner exports used
here fit into one frame.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from coldsign.core.airgap_exceptions import FormatError, NotAUrError
from coldsign.ur.bytewords import decode_bytewords

UR_SCHEME = "ur:"

_UR_TYPE_RE = re.compile(r"^ur:([^/]+)/", re.IGNORECASE)


@dataclass(frozen=True)
class DecodedUr:
    """Lowercased UR type and the checksum-verified CBOR payload."""

    ur_type: str
    payload: bytes


def is_ur_string(text: str) -> bool:
    """Check if a string is a UR-encoded string."""
    return text.strip().lower().startswith(UR_SCHEME)


def get_ur_type(text: str) -> Optional[str]:
    """Get the lowercased UR type, or None for anything that is not a UR."""
    match = _UR_TYPE_RE.match(text.strip())
    return match.group(1).lower() if match else None


def decode_ur(text: str) -> DecodedUr:
    """Split the UR envelope and decode its Bytewords body.

    Raises:
        NotAUrError: text does not start with ``ur:``.
        FormatError: missing type or body, or a multi-part UR.
        UnknownTokenError, TooShortError, ChecksumMismatchError: from the body.
    """
    stripped = text.strip()
    if not stripped.lower().startswith(UR_SCHEME):
        raise NotAUrError("not a UR string: missing 'ur:' prefix")

    ur_type, separator, body = stripped[len(UR_SCHEME):].partition("/")
    if not separator or not ur_type:
        raise FormatError("invalid ur format: expected ur:<type>/<body>")
    if not body:
        raise FormatError(f"invalid ur format: empty body for ur:{ur_type.lower()}")
    if "/" in body:
        raise FormatError("multi-part UR is not supported")

    return DecodedUr(ur_type=ur_type.lower(), payload=decode_bytewords(body))
