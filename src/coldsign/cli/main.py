#!/usr/bin/env python3
"""
coldsign CLI - inspect and build air-gap QR payloads

Commands:
- decode-ur:   decode a ur:penumbra-accounts / ur:zcash-accounts / ur:zigner-backup string
- decode-fvk:  decode a legacy binary Penumbra or Zcash FVK export frame
- decode-auth: decode an authorization response frame
- encode-tx:   build a transaction request frame from a JSON plan description
- verify-auth: decode an authorization response and validate it against a plan
- detect:      report network and message type of a request-family frame
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from typing import Any, IO

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from coldsign.core import config
from coldsign.core.airgap_exceptions import AirgapError, get_error_context
from coldsign.core.byte_utils import hex_to_bytes
from coldsign.core.logging_config import setup_logging
from coldsign.core.transaction_plan import SerializedPlan, summarize_plan
from coldsign.ur.schemas import parse_any_ur
from coldsign.wallet.authorization_qr import parse_authorization_qr, validate_authorization
from coldsign.wallet.fvk_import import parse_legacy_fvk_qr
from coldsign.wallet.qr_protocol import ChainId, detect_network, detect_qr_type
from coldsign.wallet.transaction_qr import encode_plan_to_qr, estimate_qr_code_count
from coldsign.wallet.zcash_fvk_import import is_zcash_fvk_qr, parse_zcash_fvk_qr

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler."""
    logger.error("CLI error: %s", exc, extra={"event": "cli.error", **get_error_context(exc)})
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


def _short(value: Any, width: int = 48) -> str:
    text = str(value)
    return text if len(text) <= width else f"{text[:width]}..."


def _print_record(ctx: click.Context, title: str, record: Any) -> None:
    data = _to_jsonable(record)
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(show_header=False, box=box.ROUNDED)
    for key, value in data.items():
        if isinstance(value, list):
            value = f"{len(value)} item(s)"
        table.add_row(f"[cyan]{key}", _short(value))
    console.print(Panel(table, title=title, border_style="cyan"))


def _load_plan(plan_file: IO[str]) -> SerializedPlan:
    try:
        return SerializedPlan.from_dict(json.load(plan_file))
    except (ValueError, KeyError, TypeError) as exc:
        raise click.ClickException(f"Invalid plan description: {exc}")


@click.group()
@click.option("--json", "json_output", is_flag=True, help="Machine-readable JSON output")
@click.option(
    "--log-level",
    default=config.LOG_LEVEL,
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, log_level: str):
    """Hot-wallet tools for the air-gapped signing QR protocol."""
    setup_logging(name="coldsign", level=log_level, environment=config.ENVIRONMENT)
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json_output


@cli.command("decode-ur")
@click.argument("ur_text")
@click.pass_context
def decode_ur_command(ctx: click.Context, ur_text: str):
    """
    Decode an exported UR string from the cold device.

    Example:
        coldsign decode-ur ur:penumbra-accounts/...
    """
    try:
        record = parse_any_ur(ur_text)
    except AirgapError as exc:
        _handle_cli_error(exc)
        return
    _print_record(ctx, type(record).__name__, record)


@cli.command("decode-fvk")
@click.argument("qr_hex")
@click.pass_context
def decode_fvk_command(ctx: click.Context, qr_hex: str):
    """Decode a legacy binary FVK export frame (Penumbra or Zcash)."""
    try:
        if is_zcash_fvk_qr(qr_hex):
            title, export = "Zcash FVK Export", parse_zcash_fvk_qr(qr_hex)
        else:
            title, export = "Legacy FVK Export", parse_legacy_fvk_qr(qr_hex)
    except AirgapError as exc:
        _handle_cli_error(exc)
        return
    _print_record(ctx, title, export)


@cli.command("decode-auth")
@click.argument("qr_hex")
@click.pass_context
def decode_auth_command(ctx: click.Context, qr_hex: str):
    """Decode an authorization response frame."""
    try:
        auth = parse_authorization_qr(qr_hex)
    except AirgapError as exc:
        _handle_cli_error(exc)
        return
    _print_record(ctx, "Authorization", auth)


@cli.command("encode-tx")
@click.argument("plan_file", type=click.File("r"))
@click.option("--effect-hash", required=True, help="64-byte effect hash as hex")
@click.option("--chain-id", default=int(ChainId.PENUMBRA), show_default=True, type=int)
@click.pass_context
def encode_tx_command(ctx: click.Context, plan_file: IO[str], effect_hash: str, chain_id: int):
    """
    Encode a transaction request QR payload.

    PLAN_FILE is JSON: {"plan": "<hex>", "actions": [{"kind": "spend", "randomizer": "<hex>"}]}

    Example:
        coldsign encode-tx plan.json --effect-hash 00ff...
    """
    plan = _load_plan(plan_file)
    try:
        qr_hex = encode_plan_to_qr(plan, hex_to_bytes(effect_hash), chain_id=chain_id)
    except AirgapError as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj.get("json_output"):
        click.echo(
            json.dumps(
                {
                    "qr_hex": qr_hex,
                    "payload_bytes": len(qr_hex) // 2,
                    "frames": estimate_qr_code_count(len(qr_hex) // 2),
                    "summary": summarize_plan(plan),
                },
                indent=2,
            )
        )
        return

    console.print(Panel(
        f"[cyan]Summary:[/] {summarize_plan(plan)}\n"
        f"[cyan]Payload:[/] {len(qr_hex) // 2} bytes\n\n{qr_hex}",
        title="[green]Transaction QR",
        border_style="green",
    ))


@cli.command("verify-auth")
@click.argument("plan_file", type=click.File("r"))
@click.argument("auth_hex")
@click.option("--effect-hash", required=True, help="Expected 64-byte effect hash as hex")
@click.pass_context
def verify_auth_command(ctx: click.Context, plan_file: IO[str], auth_hex: str, effect_hash: str):
    """Decode an authorization response and validate it against a plan."""
    plan = _load_plan(plan_file)
    try:
        auth = parse_authorization_qr(auth_hex)
        validate_authorization(plan, auth, hex_to_bytes(effect_hash))
    except AirgapError as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj.get("json_output"):
        click.echo(json.dumps({
            "valid": True,
            "spend_signatures": len(auth.spend_auths),
            "vote_signatures": len(auth.delegator_vote_auths),
        }, indent=2))
        return
    console.print(
        f"[green]Authorization valid:[/] {len(auth.spend_auths)} spend, "
        f"{len(auth.delegator_vote_auths)} vote signature(s)"
    )


@cli.command("detect")
@click.argument("qr_hex")
@click.pass_context
def detect_command(ctx: click.Context, qr_hex: str):
    """Report network and message type of a request-family frame."""
    result = {"network": detect_network(qr_hex), "qr_type": detect_qr_type(qr_hex)}
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(result, indent=2))
        return
    console.print(
        f"[cyan]Network:[/] {result['network'] or 'unknown'}  "
        f"[cyan]Type:[/] {result['qr_type'] or 'unknown'}"
    )


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
