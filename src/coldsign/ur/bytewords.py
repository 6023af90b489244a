"""
Bytewords decoder.

Bytewords maps each byte to a four-letter word; the "minimal" style keeps only
the first and last letter of each word. A UR body is the Bytewords rendering
of its CBOR payload followed by a big-endian CRC32 of that payload.

Only decoding is needed on the hot-wallet side.
"""

from __future__ import annotations

import logging
import zlib
from types import MappingProxyType

from coldsign.core.airgap_exceptions import ChecksumMismatchError, TooShortError, UnknownTokenError

logger = logging.getLogger(__name__)

CHECKSUM_SIZE = 4
STANDARD_SEPARATOR = "-"

# Index in this tuple is the byte value.
STANDARD_WORDS: tuple[str, ...] = tuple(
    """
    able acid also apex aqua arch atom aunt away axis back bald barn belt beta bias
    blue body brag brew bulb buzz calm cash cats chef city claw code cola cook cost
    crux curl cusp cyan dark data days deli dice diet door down draw drop drum dull
    duty each easy echo edge epic even exam exit eyes fact fair fern figs film fish
    fizz flap flew flux foxy free frog fuel fund gala game gear gems gift girl glow
    good gray grim guru gush gyro half hang hard hawk heat help high hill holy hope
    horn huts iced idea idle inch inky into iris iron item jade jazz join jolt jowl
    judo jugs jump junk jury keep keno kept keys kick kiln king kite kiwi knob lamb
    lava lazy leaf legs liar limp lion list logo loud love luau luck lung main many
    math maze memo menu meow mild mint miss monk nail navy need news next noon note
    numb obey oboe omit onyx open oval owls paid part peck play plus poem pool pose
    puff puma purr quad quiz race ramp real redo rich road rock roof ruby ruin runs
    rust safe saga scar sets silk skew slot soap solo song stub surf swan taco task
    taxi tent tied time tiny toil tomb toys trip tuna twin ugly undo unit urge user
    vast very veto vial vibe view visa void vows wall wand warm wasp wave waxy webs
    what when whiz wolf work yank yawn yell yoga yurt zaps zero zest zinc zone zoom
    """.split()
)

MINIMAL_WORDS: tuple[str, ...] = tuple(word[0] + word[-1] for word in STANDARD_WORDS)

_STANDARD_LOOKUP = MappingProxyType({word: value for value, word in enumerate(STANDARD_WORDS)})
_MINIMAL_LOOKUP = MappingProxyType({word: value for value, word in enumerate(MINIMAL_WORDS)})


def _tokenize(encoded: str) -> tuple[list[str], MappingProxyType]:
    if STANDARD_SEPARATOR in encoded:
        return encoded.split(STANDARD_SEPARATOR), _STANDARD_LOOKUP
    return [encoded[i:i + 2] for i in range(0, len(encoded), 2)], _MINIMAL_LOOKUP


def decode_bytewords(encoded: str) -> bytes:
    """Decode a Bytewords string and verify its embedded CRC32.

    A dash anywhere selects the standard (four-letter, dash separated) style;
    otherwise the minimal two-letter style is assumed. Case is ignored.

    Returns:
        The payload with the 4-byte checksum stripped.

    Raises:
        UnknownTokenError: a token is not in the selected alphabet.
        TooShortError: fewer than 5 bytes decoded.
        ChecksumMismatchError: the trailing CRC32 does not match.
    """
    tokens, lookup = _tokenize(encoded.strip().lower())

    decoded = bytearray()
    for token in tokens:
        value = lookup.get(token)
        if value is None:
            raise UnknownTokenError(token)
        decoded.append(value)

    if len(decoded) <= CHECKSUM_SIZE:
        raise TooShortError(
            f"bytewords: {len(decoded)} bytes is too short for a checksum",
            details={"decoded_bytes": len(decoded)},
        )

    payload = bytes(decoded[:-CHECKSUM_SIZE])
    expected = int.from_bytes(decoded[-CHECKSUM_SIZE:], "big")
    actual = zlib.crc32(payload)
    if actual != expected:
        logger.debug(
            "Bytewords checksum mismatch",
            extra={"event": "bytewords.checksum_mismatch", "payload_bytes": len(payload)},
        )
        raise ChecksumMismatchError(
            "bytewords: checksum mismatch",
            details={"expected": f"{expected:08x}", "actual": f"{actual:08x}"},
        )

    return payload
