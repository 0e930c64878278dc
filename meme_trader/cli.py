"""
Meme Trader CLI
===============
Typer + Rich front end for the trade executor.

Commands:
    meme-trader buy <MINT> --amount 0.1
    meme-trader sell <MINT> --percentage 50
    meme-trader status
    meme-trader reset
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from meme_trader.config.settings import Settings
from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent
from meme_trader.shared.execution.execution_result import ErrorCode, TradeResult
from meme_trader.shared.infrastructure.connection_provider import ConnectionProvider
from meme_trader.shared.system.logging import Logger

app = typer.Typer(
    name="meme-trader",
    help="Meme Trader - Jupiter swaps on Solana with finality verification",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

FEE_TYPE_HELP = "Fee type: low, medium, high, urgent, custom"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output for debugging"),
):
    Logger.set_verbose(verbose)


def _load_executor(wallet: Optional[str]):
    from meme_trader.execution.swapper import TradeExecutor
    from meme_trader.execution.wallet import load_keypair

    keypair = load_keypair(wallet)
    if keypair is None:
        console.print("[bold red]❌ Failed to load wallet. Check your wallet file or SOLANA_PRIVATE_KEY.[/bold red]")
        raise typer.Exit(1)

    console.print(f"[dim]Using wallet: {keypair.pubkey()}[/dim]")
    return TradeExecutor(keypair)


def _build_intent(**kwargs) -> TradeIntent:
    try:
        return TradeIntent(**kwargs)
    except ValueError as e:
        console.print(f"[bold red]❌ {ErrorCode.INVALID_INTENT.value}: {e}[/bold red]")
        raise typer.Exit(2)


def _render_result(result: TradeResult, action: str) -> None:
    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()

    if result.quote is not None:
        table.add_row("In amount", str(result.in_amount))
        table.add_row("Out amount", str(result.out_amount))
        table.add_row("Price", f"{result.quote.price:.6g} out per in unit")
    if result.fee_profile is not None:
        table.add_row("Fee tier", result.fee_profile.fee_tier)
        table.add_row("Compute units", str(result.fee_profile.compute_unit_limit))
        if result.fee_profile.priority_fee_micro_lamports:
            table.add_row("Priority fee", f"{result.fee_profile.priority_fee_micro_lamports} microLamports")
    if result.payload_format:
        table.add_row("Wire format", result.payload_format)
    if result.status:
        table.add_row("Status", result.status.value)
    if result.signature:
        table.add_row("Transaction ID", result.signature)
        table.add_row("Explorer URL", result.explorer_url)
    if not result.success:
        table.add_row("Error", f"{result.error_code.value}: {result.error_message}")

    title = f"✅ {action} transaction succeeded" if result.success else f"❌ {action} transaction failed"
    console.print(Panel(table, title=title, border_style="green" if result.success else "red"))


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: BUY
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def buy(
    token_address: str = typer.Argument(..., help="Token mint address"),
    amount: float = typer.Option(Settings.DEFAULT_BUY_AMOUNT, "--amount", "-a", help="Amount of SOL to spend"),
    fee_type: str = typer.Option(Settings.DEFAULT_FEE, "--fee-type", "-f", help=FEE_TYPE_HELP),
    slippage_bps: int = typer.Option(Settings.slippage_bps(), "--slippage-bps", help="Slippage tolerance (bps)"),
    anti_mev: bool = typer.Option(Settings.ANTI_MEV, "--anti-mev/--no-anti-mev", help="Skip preflight, processed commitment"),
    wallet: Optional[str] = typer.Option(None, "--wallet", "-w", help="Path to wallet file"),
):
    """
    Buy a token with SOL.

    \b
    Examples:
        meme-trader buy <MINT> --amount 0.05
        meme-trader buy <MINT> -a 0.2 --fee-type high
    """
    intent = _build_intent(
        direction=TradeDirection.BUY,
        asset_mint=token_address,
        quantity=amount,
        slippage_bps=slippage_bps,
        fee_tier=fee_type,
        anti_mev=anti_mev,
    )
    executor = _load_executor(wallet)
    result = executor.execute_trade(intent)
    _render_result(result, "Buy")
    if not result.success:
        raise typer.Exit(1)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: SELL
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def sell(
    token_address: str = typer.Argument(..., help="Token mint address"),
    percentage: float = typer.Option(
        Settings.DEFAULT_SELL_PERCENTAGE, "--percentage", "-p", help="Percentage of tokens to sell", min=0.0, max=100.0
    ),
    all_tokens: bool = typer.Option(False, "--all", help="Sell all tokens (same as 100%)"),
    raw_amount: Optional[int] = typer.Option(None, "--raw-amount", help="Exact amount in raw token units"),
    fee_type: str = typer.Option(Settings.DEFAULT_FEE, "--fee-type", "-f", help=FEE_TYPE_HELP),
    slippage_bps: int = typer.Option(Settings.slippage_bps(), "--slippage-bps", help="Slippage tolerance (bps)"),
    anti_mev: bool = typer.Option(Settings.ANTI_MEV, "--anti-mev/--no-anti-mev", help="Skip preflight, processed commitment"),
    wallet: Optional[str] = typer.Option(None, "--wallet", "-w", help="Path to wallet file"),
):
    """
    Sell a token for SOL.

    \b
    Examples:
        meme-trader sell <MINT> --percentage 50
        meme-trader sell <MINT> --all --fee-type urgent
    """
    if raw_amount is not None:
        sizing = {"quantity": raw_amount}
    else:
        sizing = {"quantity_fraction": 1.0 if all_tokens else percentage / 100}

    intent = _build_intent(
        direction=TradeDirection.SELL,
        asset_mint=token_address,
        slippage_bps=slippage_bps,
        fee_tier=fee_type,
        anti_mev=anti_mev,
        **sizing,
    )
    executor = _load_executor(wallet)
    result = executor.execute_trade(intent)
    _render_result(result, "Sell")
    if not result.success:
        raise typer.Exit(1)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: STATUS / RESET
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def status(
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Endpoint to test instead of RPC_URL"),
):
    """Check connection status and RPC endpoint."""
    provider = ConnectionProvider(endpoint=rpc_url)
    console.print(f"Current RPC URL: [cyan]{provider.endpoint}[/cyan]")

    try:
        with console.status("Testing connection to RPC endpoint..."):
            report = provider.health_report()
    except Exception as e:
        console.print(f"[bold red]❌ Connection test failed: {e}[/bold red]")
        console.print("Consider checking or updating RPC_URL.")
        raise typer.Exit(1)

    grade_style = {"Good": "green", "Acceptable": "yellow"}.get(report["latency_grade"], "red")
    console.print(f"[green]✅ Connection successful![/green] Solana version: {report['version']}")
    console.print(f"Current slot: {report['slot']}")
    console.print(
        f"RPC Latency: [{grade_style}]{report['latency_ms']:.0f}ms ({report['latency_grade']})[/{grade_style}]"
    )


@app.command()
def reset(
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Switch to this endpoint after reset"),
):
    """Reset all connection instances."""
    provider = ConnectionProvider()
    provider.reset(rpc_url)
    console.print("All connections have been reset")
    console.print("Try checking status with: [cyan]meme-trader status[/cyan]")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
