"""
Jupiter Trade Executor
======================
Quote -> build -> submit -> verify, composed into one call.

Buy and sell intents share the same pipeline; only the input and output
mints differ. Every failure mode comes back as a TradeResult.
"""

import math
import time
from typing import Optional

from solana.exceptions import SolanaRpcException
from solders.keypair import Keypair

from meme_trader.config.settings import Settings
from meme_trader.execution.finality_verifier import FinalityVerifier
from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent
from meme_trader.execution.quote_client import QuoteClient, build_jupiter_session
from meme_trader.execution.swap_builder import SwapBuilder
from meme_trader.execution.transaction_submitter import TransactionSubmitter
from meme_trader.execution.wallet import TokenBalanceReader
from meme_trader.shared.execution.execution_result import (
    ErrorCode,
    StageFailure,
    TradeResult,
    failure_result,
    from_confirmation,
    from_stage_failure,
)
from meme_trader.shared.execution.fee_estimator import FeeEstimator, rpc_fee_sampler
from meme_trader.shared.infrastructure.connection_provider import ConnectionProvider
from meme_trader.shared.system.logging import Logger


class TradeExecutor:
    """
    One executor per wallet; safe to reuse across trades.

    Usage:
        executor = TradeExecutor(keypair, ConnectionProvider())
        result = executor.execute_trade(intent)
    """

    def __init__(
        self,
        keypair: Keypair,
        connections: Optional[ConnectionProvider] = None,
        fee_estimator: Optional[FeeEstimator] = None,
        quote_client: Optional[QuoteClient] = None,
        swap_builder: Optional[SwapBuilder] = None,
        submitter: Optional[TransactionSubmitter] = None,
        verifier: Optional[FinalityVerifier] = None,
        balances: Optional[TokenBalanceReader] = None,
        settings=Settings,
    ):
        self.keypair = keypair
        self.settings = settings
        self.connections = connections or ConnectionProvider(settings=settings)

        session = None
        if quote_client is None or swap_builder is None:
            session = build_jupiter_session(settings)

        self.fee_estimator = fee_estimator or FeeEstimator(rpc_fee_sampler(self.connections), settings=settings)
        self.quote_client = quote_client or QuoteClient(session, settings=settings)
        self.swap_builder = swap_builder or SwapBuilder(session, settings=settings)
        self.submitter = submitter or TransactionSubmitter(self.connections, settings=settings)
        self.verifier = verifier or FinalityVerifier(self.connections, settings=settings)
        self.balances = balances or TokenBalanceReader(self.connections)

    # =========================================================================
    # AMOUNT
    # =========================================================================

    def resolve_amount(self, intent: TradeIntent):
        """Raw input amount: lamports for a buy, token units for a sell."""
        if intent.direction == TradeDirection.BUY:
            amount = int(round(intent.quantity * self.settings.LAMPORTS_PER_SOL))
            if amount <= 0:
                return StageFailure(ErrorCode.INVALID_INTENT, f"Buy amount {intent.quantity} SOL rounds to zero lamports")
            return amount

        if intent.quantity is not None:
            amount = int(intent.quantity)
            if amount <= 0:
                return StageFailure(ErrorCode.INVALID_INTENT, f"Sell amount {intent.quantity} rounds to zero token units")
            return amount

        try:
            holding = self.balances.get_token_info(self.keypair.pubkey(), intent.asset_mint)
        except SolanaRpcException as e:
            return StageFailure(ErrorCode.CONNECTIVITY_ERROR, f"Balance lookup failed: {e}", raw=e)
        except Exception as e:
            return StageFailure(ErrorCode.INSUFFICIENT_BALANCE, f"Balance lookup failed: {e}", raw=e)

        if holding is None or holding.amount_raw <= 0:
            return StageFailure(ErrorCode.INSUFFICIENT_BALANCE, f"You don't own any tokens with address {intent.asset_mint}")

        amount = math.floor(holding.amount_raw * intent.quantity_fraction)
        if amount <= 0:
            return StageFailure(ErrorCode.INSUFFICIENT_BALANCE, "Sell amount rounds to zero")

        Logger.info(
            f"[TRADE] Selling {amount} of {holding.amount_raw} units ({holding.ui_amount:g} tokens held, "
            f"{intent.quantity_fraction * 100:.0f}%)"
        )
        return amount

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def execute_trade(self, intent: TradeIntent) -> TradeResult:
        start = time.time()
        Logger.section(f"{intent.direction.value} {intent.asset_mint}")

        try:
            result = self._run(intent)
        except Exception as e:
            Logger.critical(f"[TRADE] Unexpected pipeline error: {e}")
            result = failure_result(ErrorCode.UNKNOWN, str(e), raw_error=e)

        result.direction = intent.direction.value
        result.mint = intent.asset_mint
        result.latency_ms = (time.time() - start) * 1000

        if result.success:
            Logger.success(f"[TRADE] {intent.direction.value} finalized: {result.signature}")
        else:
            Logger.error(f"[TRADE] {intent.direction.value} failed: {result.error_code.value} - {result.error_message}")
        return result

    def _run(self, intent: TradeIntent) -> TradeResult:
        if not self.connections.test_connection("confirmed"):
            return failure_result(
                ErrorCode.CONNECTIVITY_ERROR,
                f"RPC endpoint is not responding: {self.connections.endpoint}",
            )

        amount_raw = self.resolve_amount(intent)
        if isinstance(amount_raw, StageFailure):
            return from_stage_failure(amount_raw)

        fee_profile = self.fee_estimator.estimate(intent.fee_tier, intent.direction, intent.quantity_fraction)
        context = {"amount_raw": amount_raw, "fee_profile": fee_profile}

        quote = self.quote_client.quote(intent.input_mint, intent.output_mint, amount_raw, intent.slippage_bps)
        if isinstance(quote, StageFailure):
            return from_stage_failure(quote, **context)
        context["quote"] = quote

        payload = self.swap_builder.build(quote, str(self.keypair.pubkey()), self.settings.WRAP_AND_UNWRAP_SOL)
        if isinstance(payload, StageFailure):
            return from_stage_failure(payload, **context)

        submission = self.submitter.submit(payload, self.keypair, intent.anti_mev, fee_profile)
        if isinstance(submission, StageFailure):
            return from_stage_failure(submission, **context)
        context["payload_format"] = submission.payload.format.value

        confirmation = self.verifier.verify(submission.signature)
        return from_confirmation(confirmation, **context)
