"""
token-ledger - command-line access to a token ledger kept in a JSON state file.

Commands:
  init                 Create a new ledger (whole supply on OWNER)
  info                 Metadata, total supply and holders
  balance              Balance of one account
  allowance            Allowance OWNER granted SPENDER
  transfer             Move tokens from --from to TO
  approve              Set the allowance --from grants SPENDER
  transfer-from        Spend an allowance: --from is the spender
  increase-allowance   Raise an allowance by an amount
  decrease-allowance   Lower an allowance by an amount
  events               Print the event log
  fuzz                 Run a property-based fuzzing campaign (no state file needed)

Global options:
  --state PATH          Ledger state file (env TOKEN_LEDGER_STATE)
  --log-level TEXT      Logging level (env TOKEN_LEDGER_LOG_LEVEL)

Accounts are written as 0x-hex, or as plain labels that are used as their
UTF-8 bytes ("alice" == 0x616c696365). Output always shows 0x-hex.

Examples:
  token-ledger init 10000 alice --symbol DEMO
  token-ledger transfer --from alice bob 100
  token-ledger approve --from alice carol 50
  token-ledger transfer-from --from carol alice dave 20
  token-ledger balance bob
  token-ledger fuzz --seed 7 --sequences 20 --json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from token_ledger import snapshot
from token_ledger.config import load_config
from token_ledger.errors import LedgerError
from token_ledger.fuzz import Campaign, FuzzConfig
from token_ledger.ledger import TokenLedger
from token_ledger.version import __version__

app = typer.Typer(
    name="token-ledger",
    help="Fixed-supply ERC-20 style token ledger",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


class GlobalContext:
    def __init__(self) -> None:
        self.state_path: Path = load_config().state_path


_ctx = GlobalContext()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_account(text: str) -> bytes:
    """0x-hex → raw bytes; anything else → its UTF-8 bytes."""
    if text.startswith("0x"):
        try:
            return bytes.fromhex(text[2:])
        except ValueError:
            raise typer.BadParameter(f"not valid hex: {text}")
    return text.encode("utf-8")


def fmt_account(addr: bytes) -> str:
    return "0x" + addr.hex()


def _fail(exc: LedgerError) -> NoReturn:
    typer.echo(f"{exc.code}: {exc.message}", err=True)
    raise typer.Exit(code=1)


def _load() -> TokenLedger:
    path = _ctx.state_path
    if not path.exists():
        typer.echo(f"No ledger state at {path}; run 'token-ledger init' first", err=True)
        raise typer.Exit(code=1)
    try:
        return snapshot.load(path)
    except LedgerError as exc:
        _fail(exc)


def _mutate(action: Callable[[TokenLedger], Any]) -> TokenLedger:
    """Load, apply `action`, persist. The file is untouched when `action` fails."""
    ledger = _load()
    try:
        action(ledger)
    except LedgerError as exc:
        _fail(exc)
    snapshot.save(_ctx.state_path, ledger)
    return ledger


# ---------------------------------------------------------------------------
# Callback
# ---------------------------------------------------------------------------


def _version_cb(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    state: Optional[Path] = typer.Option(
        None,
        "--state",
        help="Ledger state file",
        envvar="TOKEN_LEDGER_STATE",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level",
        envvar="TOKEN_LEDGER_LOG_LEVEL",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_cb,
        is_eager=True,
        help="Print version and exit",
    ),
) -> None:
    _ctx.state_path = Path(state).expanduser() if state is not None else load_config().state_path
    _configure_logging(log_level)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    supply: int = typer.Argument(..., help="Total (fixed) supply in base units"),
    owner: str = typer.Argument(..., help="Account receiving the whole supply"),
    name: Optional[str] = typer.Option(None, "--name", help="Display name"),
    symbol: Optional[str] = typer.Option(None, "--symbol", help="Ticker symbol"),
    decimals: Optional[int] = typer.Option(None, "--decimals", help="Display decimals"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing state file"),
) -> None:
    """Create a new ledger."""
    path = _ctx.state_path
    if path.exists() and not force:
        typer.echo(f"State file {path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    try:
        ledger = TokenLedger(supply, parse_account(owner), name=name, symbol=symbol, decimals=decimals)
    except LedgerError as exc:
        _fail(exc)
    snapshot.save(path, ledger)
    typer.echo(f"Ledger created: {ledger.total_supply()} {ledger.symbol} to {fmt_account(ledger.owner)}")


@app.command()
def info(json_out: bool = typer.Option(False, "--json", help="JSON output")) -> None:
    """Show metadata, total supply and holders."""
    ledger = _load()
    if json_out:
        typer.echo(json.dumps(snapshot.dump_state(ledger, include_events=False), indent=2))
        return
    meta = Table.grid(padding=(0, 2))
    meta.add_row("Name", ledger.name)
    meta.add_row("Symbol", ledger.symbol)
    meta.add_row("Decimals", str(ledger.decimals))
    meta.add_row("Total supply", str(ledger.total_supply()))
    meta.add_row("Owner", fmt_account(ledger.owner))
    console.print(meta)
    t = Table(title="Holders", box=box.SIMPLE)
    t.add_column("Account")
    t.add_column("Balance", justify="right")
    for addr, bal in sorted(ledger.balances().items()):
        t.add_row(fmt_account(addr), str(bal))
    console.print(t)


@app.command()
def balance(account: str = typer.Argument(..., help="Account to query")) -> None:
    """Print the balance of ACCOUNT."""
    ledger = _load()
    try:
        typer.echo(str(ledger.balance_of(parse_account(account))))
    except LedgerError as exc:
        _fail(exc)


@app.command()
def allowance(
    owner: str = typer.Argument(..., help="Granting account"),
    spender: str = typer.Argument(..., help="Spending account"),
) -> None:
    """Print the allowance OWNER granted SPENDER."""
    ledger = _load()
    try:
        typer.echo(str(ledger.allowance(parse_account(owner), parse_account(spender))))
    except LedgerError as exc:
        _fail(exc)


@app.command()
def transfer(
    to: str = typer.Argument(..., help="Receiving account"),
    amount: int = typer.Argument(..., help="Amount in base units"),
    sender: str = typer.Option(..., "--from", help="Paying account"),
) -> None:
    """Transfer AMOUNT from --from to TO."""
    src, dst = parse_account(sender), parse_account(to)
    _mutate(lambda led: led.transfer(src, dst, amount))
    typer.echo(f"Transferred {amount} from {fmt_account(src)} to {fmt_account(dst)}")


@app.command()
def approve(
    spender: str = typer.Argument(..., help="Account allowed to spend"),
    amount: int = typer.Argument(..., help="New allowance (replaces the old one)"),
    owner: str = typer.Option(..., "--from", help="Granting account"),
) -> None:
    """Set the allowance --from grants SPENDER to AMOUNT."""
    o, s = parse_account(owner), parse_account(spender)
    _mutate(lambda led: led.approve(o, s, amount))
    typer.echo(f"Approved {fmt_account(s)} to spend {amount} of {fmt_account(o)}")


@app.command("transfer-from")
def transfer_from(
    owner: str = typer.Argument(..., help="Account being debited"),
    to: str = typer.Argument(..., help="Receiving account"),
    amount: int = typer.Argument(..., help="Amount in base units"),
    spender: str = typer.Option(..., "--from", help="Spender using its allowance"),
) -> None:
    """Move AMOUNT from OWNER to TO using the allowance granted to --from."""
    sp, o, dst = parse_account(spender), parse_account(owner), parse_account(to)
    _mutate(lambda led: led.transfer_from(sp, o, dst, amount))
    typer.echo(f"Transferred {amount} from {fmt_account(o)} to {fmt_account(dst)} (spender {fmt_account(sp)})")


@app.command("increase-allowance")
def increase_allowance(
    spender: str = typer.Argument(..., help="Account allowed to spend"),
    amount: int = typer.Argument(..., help="Amount to add"),
    owner: str = typer.Option(..., "--from", help="Granting account"),
) -> None:
    """Raise the allowance --from grants SPENDER by AMOUNT."""
    o, s = parse_account(owner), parse_account(spender)
    ledger = _mutate(lambda led: led.increase_allowance(o, s, amount))
    typer.echo(f"Allowance is now {ledger.allowance(o, s)}")


@app.command("decrease-allowance")
def decrease_allowance(
    spender: str = typer.Argument(..., help="Account allowed to spend"),
    amount: int = typer.Argument(..., help="Amount to subtract"),
    owner: str = typer.Option(..., "--from", help="Granting account"),
) -> None:
    """Lower the allowance --from grants SPENDER by AMOUNT."""
    o, s = parse_account(owner), parse_account(spender)
    ledger = _mutate(lambda led: led.decrease_allowance(o, s, amount))
    typer.echo(f"Allowance is now {ledger.allowance(o, s)}")


@app.command()
def events(
    name: Optional[str] = typer.Option(None, "--name", help="Only events with this name"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Print the event log."""
    ledger = _load()
    items = [e for e in ledger.events if name is None or e.name == name]
    if json_out:
        typer.echo(json.dumps([e.to_dict() for e in items], indent=2))
        return
    t = Table(title="Events", box=box.SIMPLE)
    t.add_column("#", justify="right")
    t.add_column("Event")
    t.add_column("Args")
    for e in items:
        d = e.to_dict()
        t.add_row(str(e.seq), e.name, " ".join(f"{k}={v}" for k, v in d["args"].items()))
    console.print(t)


@app.command()
def fuzz(
    seed: Optional[int] = typer.Option(None, "--seed", help="Campaign seed (default: random)"),
    sequences: Optional[int] = typer.Option(None, "--sequences", min=1, help="Independent call sequences"),
    flows: Optional[int] = typer.Option(None, "--flows", min=1, help="Calls per sequence"),
    supply: Optional[int] = typer.Option(None, "--supply", min=0, help="Initial supply of each fresh ledger"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run a property-based fuzzing campaign against a fresh ledger."""
    cfg = FuzzConfig.from_env(seed=seed, sequences=sequences, flows=flows, initial_supply=supply)
    try:
        result = Campaign(cfg).run()
    except LedgerError as exc:
        _fail(exc)

    if json_out:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        t = Table(title=f"Fuzzing campaign (seed {result.seed})", box=box.SIMPLE)
        t.add_column("Property")
        t.add_column("Result")
        for prop, ok in result.properties.items():
            t.add_row(prop, "[green]passed[/green]" if ok else "[red]FAILED[/red]")
        console.print(t)
        for failure in result.failures:
            console.print(failure.describe(), markup=False, highlight=False)
        console.print(
            f"{result.calls} calls, {result.reverts} reverted, {result.sequences} sequences, "
            f"{result.elapsed:.2f}s"
        )
    if not result.passed:
        raise typer.Exit(code=1)


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
