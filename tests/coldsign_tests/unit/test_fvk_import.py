"""
Unit tests for legacy binary FVK import.
"""

import pytest

from coldsign.core import config
from coldsign.core.airgap_exceptions import FormatError, TruncatedError
from coldsign.wallet.fvk_import import (
    MIN_FRAME_SIZE,
    LegacyFvkExport,
    create_wallet_import,
    is_legacy_fvk_qr,
    parse_legacy_fvk_bytes,
    parse_legacy_fvk_qr,
)

FVK = bytes(range(64))
WALLET_ID = bytes(range(100, 132))


def fvk_frame(index=0, label=b"", fvk=FVK, wallet_id=WALLET_ID, prelude=b"\x53\x03\x01"):
    return prelude + index.to_bytes(4, "little") + bytes([len(label)]) + label + fvk + wallet_id


def test_minimum_frame_with_zero_bytes():
    data = b"\x53\x03\x01" + bytes(101)
    assert len(data) == MIN_FRAME_SIZE == 104
    export = parse_legacy_fvk_bytes(data)
    assert export.account_index == 0
    assert export.label is None
    assert export.fvk_bytes == bytes(64)
    assert export.wallet_id_bytes == bytes(32)


def test_labelled_export():
    export = parse_legacy_fvk_qr(fvk_frame(index=7, label="Cold Ledger".encode()).hex())
    assert export == LegacyFvkExport(
        account_index=7,
        label="Cold Ledger",
        fvk_bytes=FVK,
        wallet_id_bytes=WALLET_ID,
    )


def test_trailing_bytes_ignored():
    export = parse_legacy_fvk_bytes(fvk_frame(index=1) + b"\xde\xad")
    assert export.wallet_id_bytes == WALLET_ID


def test_one_byte_short():
    with pytest.raises(FormatError, match="too short"):
        parse_legacy_fvk_bytes(fvk_frame()[:-1])


@pytest.mark.parametrize(
    "prelude,name",
    [
        (b"\x54\x03\x01", "prelude"),
        (b"\x53\x04\x01", "chain id"),
        (b"\x53\x03\x02", "message type"),
    ],
)
def test_bad_prelude(prelude, name):
    with pytest.raises(FormatError, match=name):
        parse_legacy_fvk_bytes(fvk_frame(prelude=prelude))


def test_label_runs_past_end_is_a_format_error():
    # long enough overall, but the label length eats into the key fields
    data = b"\x53\x03\x01" + bytes(4) + b"\x05" + bytes(96)
    with pytest.raises(FormatError) as exc_info:
        parse_legacy_fvk_bytes(data)
    assert not isinstance(exc_info.value, TruncatedError)


def test_label_not_utf8():
    with pytest.raises(FormatError, match="UTF-8"):
        parse_legacy_fvk_bytes(fvk_frame(label=b"\xff\xfe"))


def test_bad_hex():
    with pytest.raises(FormatError):
        parse_legacy_fvk_qr("53030")


def test_is_legacy_fvk_qr():
    assert is_legacy_fvk_qr(fvk_frame().hex())
    assert not is_legacy_fvk_qr(fvk_frame()[:-1].hex())
    assert not is_legacy_fvk_qr(fvk_frame(prelude=b"\x53\x04\x01").hex())
    assert not is_legacy_fvk_qr("not hex at all")


class TestWalletImport:
    def test_export_label_wins(self):
        export = parse_legacy_fvk_bytes(fvk_frame(index=2, label=b"Mine"))
        wallet = create_wallet_import(export, default_label="Other")
        assert wallet.label == "Mine"
        assert wallet.account_index == 2
        assert wallet.fvk_bytes == FVK
        assert wallet.wallet_id_bytes == WALLET_ID

    def test_caller_default_label(self):
        wallet = create_wallet_import(parse_legacy_fvk_bytes(fvk_frame()), default_label="Imported")
        assert wallet.label == "Imported"

    def test_configured_default_label(self, monkeypatch):
        monkeypatch.setattr(config, "DEFAULT_WALLET_LABEL", "Zigner Wallet")
        wallet = create_wallet_import(parse_legacy_fvk_bytes(fvk_frame()))
        assert wallet.label == "Zigner Wallet"
