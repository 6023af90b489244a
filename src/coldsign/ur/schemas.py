"""
Record extractors for the UR exports produced by Zigner.

- ur:penumbra-accounts - Penumbra full viewing key export
- ur:zcash-accounts    - Zcash unified full viewing key export
- ur:zigner-backup     - seed name and derivation list (JSON inside CBOR text)

Maps are keyed by small unsigned integers. Keys this module does not know
are consumed generically and dropped, so newer firmware can add fields
without breaking older wallets. Optional CBOR tags in front of the top-level
map and each account are accepted whether present or not.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from coldsign.core.airgap_exceptions import (
    InvalidPayloadError,
    MissingFieldError,
    NotAUrError,
    SchemaError,
    WrongUrTypeError,
)
from coldsign.ur.cbor_reader import CborReader
from coldsign.ur.ur_decoder import decode_ur, get_ur_type, is_ur_string

logger = logging.getLogger(__name__)

PENUMBRA_ACCOUNTS = "penumbra-accounts"
ZCASH_ACCOUNTS = "zcash-accounts"
ZIGNER_BACKUP = "zigner-backup"

# Tag values emitted by current firmware. Other emitters use different values
# or none at all, so these are compared for diagnostics only.
TAG_PENUMBRA_ACCOUNTS = 49301
TAG_PENUMBRA_ACCOUNT = 49302
TAG_ZCASH_ACCOUNTS = 49201
TAG_ZCASH_ACCOUNT = 49203

WALLET_ID_SIZE = 32

# Map keys shared by both account schemas
_KEY_WALLET_ID = 1
_KEY_SEED_FINGERPRINT = 1
_KEY_ACCOUNTS = 2
_ACCOUNT_KEY_VIEWING_KEY = 1
_ACCOUNT_KEY_INDEX = 2
_ACCOUNT_KEY_LABEL = 3


@dataclass(frozen=True)
class PenumbraUrExport:
    wallet_id: bytes
    fvk: str = field(repr=False)
    account_index: int
    label: Optional[str]


@dataclass(frozen=True)
class ZcashUrExport:
    ufvk: str = field(repr=False)
    account_index: int
    label: Optional[str]
    seed_fingerprint: Optional[bytes] = None


@dataclass(frozen=True)
class ZignerBackupAccount:
    path: str
    genesis_hash: Optional[str]
    network_name: Optional[str]
    encryption: Optional[str]
    base58prefix: Optional[int]  # SS58 address format for Substrate networks


@dataclass(frozen=True)
class ZignerBackupExport:
    version: int
    seed_name: str
    accounts: tuple[ZignerBackupAccount, ...]


UrExport = Union[PenumbraUrExport, ZcashUrExport, ZignerBackupExport]


@dataclass
class _AccountFields:
    viewing_key: Optional[str] = None
    account_index: int = 0
    label: Optional[str] = None


def _open_ur(text: str, expected_type: str) -> CborReader:
    if not is_ur_string(text):
        raise NotAUrError("not a UR string: missing 'ur:' prefix")
    actual_type = get_ur_type(text)
    if actual_type != expected_type:
        raise WrongUrTypeError(expected_type, actual_type)
    return CborReader(decode_ur(text).payload)


def _skip_tag(reader: CborReader, expected_tag: int, context: str) -> None:
    tag = reader.skip_optional_tag()
    if tag is not None and tag != expected_tag:
        logger.debug(
            "%s: tag %d differs from expected %d",
            context,
            tag,
            expected_tag,
            extra={"event": "ur.tag_mismatch", "ur_type": context, "tag": tag, "expected_tag": expected_tag},
        )


def _log_trailing(reader: CborReader, context: str) -> None:
    if reader.has_more():
        logger.debug(
            "%s: %d trailing bytes ignored",
            context,
            reader.remaining,
            extra={"event": "ur.trailing_bytes", "ur_type": context, "trailing_bytes": reader.remaining},
        )


def _read_account(reader: CborReader, expected_tag: int, context: str) -> _AccountFields:
    _skip_tag(reader, expected_tag, context)
    account = _AccountFields()
    for _ in range(reader.read_map_header()):
        key = reader.read_uint()
        if key == _ACCOUNT_KEY_VIEWING_KEY:
            account.viewing_key = reader.read_text_string()
        elif key == _ACCOUNT_KEY_INDEX:
            account.account_index = reader.read_uint()
        elif key == _ACCOUNT_KEY_LABEL:
            account.label = reader.read_text_string()
        else:
            reader.skip_value()
    return account


def _read_first_account(reader: CborReader, expected_tag: int, context: str) -> _AccountFields:
    count = reader.read_array_header()
    if count < 1:
        raise SchemaError(f"{context}: expected at least one account")

    account = _read_account(reader, expected_tag, context)
    for _ in range(count - 1):
        reader.skip_value()
    if count > 1:
        logger.info(
            "%s: importing first of %d accounts",
            context,
            count,
            extra={"event": "ur.extra_accounts", "ur_type": context, "account_count": count},
        )
    return account


# ============================================================================
# Penumbra
# ============================================================================


def parse_penumbra_ur(text: str) -> PenumbraUrExport:
    """
    Parse a ur:penumbra-accounts string.

    CBOR structure::

        [tag 49301] map {
          1: bytes(32)                      wallet id
          2: array [
            [tag 49302] map {
              1: text                       full viewing key (bech32m)
              2: uint                       account index
              3: text                       label (optional)
            }, ...
          ]
        }
    """
    reader = _open_ur(text, PENUMBRA_ACCOUNTS)
    _skip_tag(reader, TAG_PENUMBRA_ACCOUNTS, PENUMBRA_ACCOUNTS)

    wallet_id: Optional[bytes] = None
    account = _AccountFields()
    for _ in range(reader.read_map_header()):
        key = reader.read_uint()
        if key == _KEY_WALLET_ID:
            wallet_id = reader.read_byte_string()
            if len(wallet_id) != WALLET_ID_SIZE:
                raise SchemaError(
                    f"{PENUMBRA_ACCOUNTS}: wallet id must be {WALLET_ID_SIZE} bytes, got {len(wallet_id)}"
                )
        elif key == _KEY_ACCOUNTS:
            account = _read_first_account(reader, TAG_PENUMBRA_ACCOUNT, PENUMBRA_ACCOUNTS)
        else:
            reader.skip_value()
    _log_trailing(reader, PENUMBRA_ACCOUNTS)

    if wallet_id is None:
        raise MissingFieldError("wallet_id", PENUMBRA_ACCOUNTS)
    if account.viewing_key is None:
        raise MissingFieldError("fvk", PENUMBRA_ACCOUNTS)

    return PenumbraUrExport(
        wallet_id=wallet_id,
        fvk=account.viewing_key,
        account_index=account.account_index,
        label=account.label,
    )


# ============================================================================
# Zcash
# ============================================================================


def parse_zcash_ur(text: str) -> ZcashUrExport:
    """
    Parse a ur:zcash-accounts string (Keystone SDK compatible layout).

    CBOR structure::

        [tag 49201] map {
          1: bytes(16)                      seed fingerprint
          2: array [
            [tag 49203] map {
              1: text                       unified full viewing key
              2: uint                       account index
              3: text                       label (optional)
            }, ...
          ]
        }
    """
    reader = _open_ur(text, ZCASH_ACCOUNTS)
    _skip_tag(reader, TAG_ZCASH_ACCOUNTS, ZCASH_ACCOUNTS)

    seed_fingerprint: Optional[bytes] = None
    account = _AccountFields()
    for _ in range(reader.read_map_header()):
        key = reader.read_uint()
        if key == _KEY_SEED_FINGERPRINT:
            seed_fingerprint = reader.read_byte_string()
        elif key == _KEY_ACCOUNTS:
            account = _read_first_account(reader, TAG_ZCASH_ACCOUNT, ZCASH_ACCOUNTS)
        else:
            reader.skip_value()
    _log_trailing(reader, ZCASH_ACCOUNTS)

    if account.viewing_key is None:
        raise MissingFieldError("ufvk", ZCASH_ACCOUNTS)

    return ZcashUrExport(
        ufvk=account.viewing_key,
        account_index=account.account_index,
        label=account.label,
        seed_fingerprint=seed_fingerprint,
    )


# ============================================================================
# Zigner backup
# ============================================================================


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _map_backup_account(entry: Any) -> ZignerBackupAccount:
    if not isinstance(entry, dict):
        entry = {}
    path = entry.get("path")
    prefix = entry.get("base58prefix")
    return ZignerBackupAccount(
        path=path if isinstance(path, str) else "",
        genesis_hash=_optional_str(entry.get("genesis_hash")),
        network_name=_optional_str(entry.get("network")),
        encryption=_optional_str(entry.get("encryption")),
        base58prefix=prefix if isinstance(prefix, int) and not isinstance(prefix, bool) else None,
    )


def parse_zigner_backup_ur(text: str) -> ZignerBackupExport:
    """
    Parse a ur:zigner-backup string.

    The CBOR payload is one text string holding JSON::

        {"v": 2, "name": "<seed name>",
         "accounts": [{"path", "genesis_hash", "network", "encryption", "base58prefix"}]}

    Missing optional account fields become None (path becomes ""); they never
    fail the whole import.
    """
    reader = _open_ur(text, ZIGNER_BACKUP)
    json_text = reader.read_text_string()
    _log_trailing(reader, ZIGNER_BACKUP)

    # json.loads also raises plain ValueError (oversized integers) and
    # RecursionError (deep nesting); all of them are payload errors.
    try:
        parsed = json.loads(json_text)
    except (ValueError, RecursionError) as exc:
        raise InvalidPayloadError(
            f"{ZIGNER_BACKUP}: invalid JSON in payload: {exc}",
            details={"error_type": type(exc).__name__},
        ) from exc
    if not isinstance(parsed, dict):
        raise InvalidPayloadError(f"{ZIGNER_BACKUP}: JSON payload must be an object")

    seed_name = parsed.get("name")
    if not isinstance(seed_name, str) or not seed_name:
        raise MissingFieldError("name", ZIGNER_BACKUP)

    accounts = parsed.get("accounts")
    if not isinstance(accounts, list):
        raise MissingFieldError("accounts", ZIGNER_BACKUP)

    version = parsed.get("v", 1)
    if not isinstance(version, int) or isinstance(version, bool):
        version = 1

    return ZignerBackupExport(
        version=version,
        seed_name=seed_name,
        accounts=tuple(_map_backup_account(entry) for entry in accounts),
    )


_PARSERS: Dict[str, Callable[[str], UrExport]] = {
    PENUMBRA_ACCOUNTS: parse_penumbra_ur,
    ZCASH_ACCOUNTS: parse_zcash_ur,
    ZIGNER_BACKUP: parse_zigner_backup_ur,
}


def parse_any_ur(text: str) -> UrExport:
    """Dispatch on the UR type to the matching extractor."""
    if not is_ur_string(text):
        raise NotAUrError("not a UR string: missing 'ur:' prefix")
    ur_type = get_ur_type(text)
    parser = _PARSERS.get(ur_type or "")
    if parser is None:
        raise WrongUrTypeError("|".join(_PARSERS), ur_type)
    return parser(text)
