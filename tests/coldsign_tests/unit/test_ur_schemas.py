"""
Unit tests for the Penumbra, Zcash and Zigner-backup UR extractors.
"""

import json
import logging

import cbor2
import pytest

from coldsign.core.airgap_exceptions import (
    ChecksumMismatchError,
    InvalidPayloadError,
    MissingFieldError,
    NotAUrError,
    SchemaError,
    UnsupportedTypeError,
    WrongUrTypeError,
)
from coldsign.ur.schemas import (
    TAG_PENUMBRA_ACCOUNT,
    TAG_PENUMBRA_ACCOUNTS,
    TAG_ZCASH_ACCOUNT,
    TAG_ZCASH_ACCOUNTS,
    PenumbraUrExport,
    ZcashUrExport,
    ZignerBackupAccount,
    ZignerBackupExport,
    parse_any_ur,
    parse_penumbra_ur,
    parse_zcash_ur,
    parse_zigner_backup_ur,
)

from coldsign_tests.helpers import account_map, make_ur

WALLET_ID = bytes(range(32))
FVK = "penumbrafullviewingkey1qqqsyqcyq5rqwzqfpg9scrgwpugpzysn"
UFVK = "uview1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq"
FINGERPRINT = bytes(range(16))


def penumbra_export(tagged=True, accounts=None, wallet_id=WALLET_ID, extra=None):
    if accounts is None:
        accounts = [account_map(FVK, 3, "Savings")]
    if tagged:
        accounts = [cbor2.CBORTag(TAG_PENUMBRA_ACCOUNT, a) for a in accounts]
    body = {}
    if wallet_id is not None:
        body[1] = wallet_id
    body[2] = accounts
    body.update(extra or {})
    return cbor2.CBORTag(TAG_PENUMBRA_ACCOUNTS, body) if tagged else body


def penumbra_payload(**kwargs):
    return cbor2.dumps(penumbra_export(**kwargs))


def zcash_payload(tagged=True, accounts=None):
    if accounts is None:
        accounts = [account_map(UFVK, 1, "Zec")]
    if tagged:
        accounts = [cbor2.CBORTag(TAG_ZCASH_ACCOUNT, a) for a in accounts]
    body = {1: FINGERPRINT, 2: accounts}
    return cbor2.dumps(cbor2.CBORTag(TAG_ZCASH_ACCOUNTS, body) if tagged else body)


def backup_ur(obj):
    text = obj if isinstance(obj, str) else json.dumps(obj)
    return make_ur("zigner-backup", cbor2.dumps(text))


class TestPenumbra:
    def test_tagged_export(self):
        export = parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload()))
        assert export == PenumbraUrExport(wallet_id=WALLET_ID, fvk=FVK, account_index=3, label="Savings")

    def test_tags_are_optional(self):
        tagged = parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload(tagged=True)))
        untagged = parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload(tagged=False)))
        assert tagged == untagged

    def test_standard_bytewords_body(self):
        export = parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload(), minimal=False))
        assert export.fvk == FVK

    def test_unexpected_tag_value_is_accepted(self):
        payload = cbor2.dumps(cbor2.CBORTag(1234, penumbra_export(tagged=False)))
        assert parse_penumbra_ur(make_ur("penumbra-accounts", payload)).account_index == 3

    def test_optional_account_fields(self):
        payload = penumbra_payload(accounts=[account_map(FVK)])
        export = parse_penumbra_ur(make_ur("penumbra-accounts", payload))
        assert export.account_index == 0
        assert export.label is None

    def test_unknown_keys_skipped(self):
        unknown = {9: {"x": [1, b"\x00"]}}
        account = account_map(FVK, 2, extra={7: cbor2.CBORTag(42, "future")})
        payload = penumbra_payload(accounts=[account], extra=unknown)
        export = parse_penumbra_ur(make_ur("penumbra-accounts", payload))
        assert export.fvk == FVK
        assert export.account_index == 2

    def test_first_of_many_accounts(self, caplog):
        accounts = [account_map(FVK, 0, "First"), account_map("other", 1, "Second")]
        with caplog.at_level(logging.INFO, logger="coldsign.ur.schemas"):
            export = parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload(accounts=accounts)))
        assert export.label == "First"
        assert any(getattr(r, "event", None) == "ur.extra_accounts" for r in caplog.records)

    def test_empty_account_list(self):
        with pytest.raises(SchemaError):
            parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload(accounts=[])))

    def test_wrong_wallet_id_length(self):
        payload = penumbra_payload(wallet_id=bytes(16))
        with pytest.raises(SchemaError, match="wallet id"):
            parse_penumbra_ur(make_ur("penumbra-accounts", payload))

    def test_missing_wallet_id(self):
        with pytest.raises(MissingFieldError) as exc_info:
            parse_penumbra_ur(make_ur("penumbra-accounts", penumbra_payload(wallet_id=None)))
        assert exc_info.value.field_name == "wallet_id"

    def test_missing_fvk(self):
        payload = penumbra_payload(accounts=[account_map(index=1, label="x")])
        with pytest.raises(MissingFieldError) as exc_info:
            parse_penumbra_ur(make_ur("penumbra-accounts", payload))
        assert exc_info.value.field_name == "fvk"

    def test_negative_integer_in_unknown_key(self):
        payload = penumbra_payload(extra={9: -1})
        with pytest.raises(UnsupportedTypeError):
            parse_penumbra_ur(make_ur("penumbra-accounts", payload))

    def test_text_map_key_rejected(self):
        payload = cbor2.dumps({"wallet": WALLET_ID})
        with pytest.raises(UnsupportedTypeError):
            parse_penumbra_ur(make_ur("penumbra-accounts", payload))

    def test_wrong_ur_type(self):
        with pytest.raises(WrongUrTypeError) as exc_info:
            parse_penumbra_ur(make_ur("zcash-accounts", zcash_payload()))
        assert exc_info.value.expected == "penumbra-accounts"
        assert exc_info.value.actual == "zcash-accounts"

    def test_not_a_ur(self):
        with pytest.raises(NotAUrError):
            parse_penumbra_ur("penumbrafullviewingkey1...")

    def test_corrupted_body(self):
        text = make_ur("penumbra-accounts", penumbra_payload())
        with pytest.raises(ChecksumMismatchError):
            parse_penumbra_ur(text[:-2] + ("ae" if text[-2:] != "ae" else "ad"))


class TestZcash:
    def test_tagged_export(self):
        export = parse_zcash_ur(make_ur("zcash-accounts", zcash_payload()))
        assert export == ZcashUrExport(ufvk=UFVK, account_index=1, label="Zec", seed_fingerprint=FINGERPRINT)

    def test_tags_are_optional(self):
        assert parse_zcash_ur(make_ur("zcash-accounts", zcash_payload(tagged=False))) == parse_zcash_ur(
            make_ur("zcash-accounts", zcash_payload(tagged=True))
        )

    def test_missing_ufvk(self):
        payload = zcash_payload(accounts=[account_map(index=0)])
        with pytest.raises(MissingFieldError) as exc_info:
            parse_zcash_ur(make_ur("zcash-accounts", payload))
        assert exc_info.value.field_name == "ufvk"

    def test_fingerprint_is_optional(self):
        payload = cbor2.dumps({2: [account_map(UFVK)]})
        export = parse_zcash_ur(make_ur("zcash-accounts", payload))
        assert export.seed_fingerprint is None
        assert export.account_index == 0


class TestZignerBackup:
    def test_full_backup(self):
        export = parse_zigner_backup_ur(
            backup_ur(
                {
                    "v": 2,
                    "name": "Main seed",
                    "accounts": [
                        {
                            "path": "//polkadot",
                            "genesis_hash": "0x91b1",
                            "network": "polkadot",
                            "encryption": "sr25519",
                            "base58prefix": 0,
                        }
                    ],
                }
            )
        )
        assert export == ZignerBackupExport(
            version=2,
            seed_name="Main seed",
            accounts=(
                ZignerBackupAccount(
                    path="//polkadot",
                    genesis_hash="0x91b1",
                    network_name="polkadot",
                    encryption="sr25519",
                    base58prefix=0,
                ),
            ),
        )

    def test_account_defaults(self):
        export = parse_zigner_backup_ur(backup_ur({"name": "s", "accounts": [{}]}))
        assert export.version == 1
        assert export.accounts == (
            ZignerBackupAccount(path="", genesis_hash=None, network_name=None, encryption=None, base58prefix=None),
        )

    def test_empty_accounts_list(self):
        assert parse_zigner_backup_ur(backup_ur({"name": "s", "accounts": []})).accounts == ()

    def test_missing_accounts(self):
        with pytest.raises(MissingFieldError) as exc_info:
            parse_zigner_backup_ur(backup_ur({"v": 1, "name": "s"}))
        assert exc_info.value.field_name == "accounts"

    def test_missing_name(self):
        with pytest.raises(MissingFieldError) as exc_info:
            parse_zigner_backup_ur(backup_ur({"accounts": []}))
        assert exc_info.value.field_name == "name"

    @pytest.mark.parametrize("text", ["{not json", "[1, 2]"])
    def test_invalid_json(self, text):
        with pytest.raises(InvalidPayloadError):
            parse_zigner_backup_ur(backup_ur(text))

    def test_deeply_nested_json(self):
        text = '{"name":"x","accounts":[],"extra":' + "[" * 100_000 + "]" * 100_000 + "}"
        with pytest.raises(InvalidPayloadError):
            parse_zigner_backup_ur(backup_ur(text))

    def test_oversized_json_integer(self):
        text = '{"name":"x","accounts":[],"v":' + "9" * 4400 + "}"
        with pytest.raises(InvalidPayloadError) as exc_info:
            parse_zigner_backup_ur(backup_ur(text))
        assert exc_info.value.details["error_type"] == "ValueError"

    def test_payload_must_be_text(self):
        with pytest.raises(UnsupportedTypeError):
            parse_zigner_backup_ur(make_ur("zigner-backup", cbor2.dumps(b"{}")))


class TestParseAny:
    def test_dispatches_by_type(self):
        assert isinstance(parse_any_ur(make_ur("penumbra-accounts", penumbra_payload())), PenumbraUrExport)
        assert isinstance(parse_any_ur(make_ur("zcash-accounts", zcash_payload())), ZcashUrExport)
        assert isinstance(
            parse_any_ur(backup_ur({"name": "s", "accounts": []})),
            ZignerBackupExport,
        )

    def test_unknown_type(self):
        with pytest.raises(WrongUrTypeError):
            parse_any_ur("ur:crypto-seed/aeadao")

    def test_not_a_ur(self):
        with pytest.raises(NotAUrError):
            parse_any_ur("530301")
