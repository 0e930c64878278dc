"""
Finality Verifier
=================
Polls the ledger until a submitted transaction is finalized, rejected, or
the polling budget runs out.

Two tiers:
1. Cheap signature-status polling (fixed interval, bounded attempts).
2. One direct transaction lookup once polling is exhausted. Status entries
   can be evicted from node memory before settlement while the full
   transaction record is still retrievable.

States: PENDING -> CONFIRMED_NOT_FINAL -> FINALIZED | FAILED, and after
exhaustion NOT_FINALIZED | NOT_FOUND | VERIFICATION_ERROR.
"""

import time
from typing import Any, Callable, Optional

from solana.rpc.commitment import Finalized
from solders.signature import Signature

from meme_trader.config.settings import Settings
from meme_trader.execution.retry import RetryPolicy, poll_until
from meme_trader.shared.execution.execution_result import ConfirmationResult, ConfirmationStatus
from meme_trader.shared.infrastructure.connection_provider import ConnectionProvider
from meme_trader.shared.system.logging import Logger


PENDING = "pending"
CONFIRMED_NOT_FINAL = "confirmed_not_final"


def commitment_name(value: Any) -> str:
    """'finalized' for TransactionConfirmationStatus.Finalized or 'finalized'."""
    if value is None:
        return ""
    return str(value).split(".")[-1].lower()


class FinalityVerifier:
    def __init__(
        self,
        connections: ConnectionProvider,
        policy: Optional[RetryPolicy] = None,
        lookup_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        settings=Settings,
    ):
        self.connections = connections
        self.policy = policy or RetryPolicy(settings.VERIFY_MAX_RETRIES, settings.VERIFY_INTERVAL_S)
        self.lookup_attempts = settings.VERIFY_LOOKUP_ATTEMPTS if lookup_attempts is None else lookup_attempts
        self.sleep = sleep

    @property
    def max_rpc_calls(self) -> int:
        return self.policy.max_attempts + self.lookup_attempts

    def verify(self, signature: str) -> ConfirmationResult:
        try:
            sig = Signature.from_string(signature)
        except Exception as e:
            return ConfirmationResult(
                ConfirmationStatus.VERIFICATION_ERROR,
                signature,
                detail=f"Invalid signature: {e}",
            )

        Logger.info(f"[VERIFY] Verifying transaction {signature} on chain...")
        client = self.connections.get("finalized")
        phase = PENDING

        def poll_status(attempt: int) -> Optional[ConfirmationResult]:
            nonlocal phase
            resp = client.get_signature_statuses([sig], search_transaction_history=True)
            status = resp.value[0] if resp.value else None

            if status is None:
                if attempt % 5 == 0:
                    Logger.debug(f"[VERIFY] Transaction not found yet ({attempt}/{self.policy.max_attempts})")
                return None

            if status.err is not None:
                Logger.error(f"[VERIFY] Transaction {signature} failed with error: {status.err}")
                return ConfirmationResult(ConfirmationStatus.FAILED, signature, on_chain_error=status.err, attempts=attempt)

            level = commitment_name(status.confirmation_status)
            if level == "finalized":
                return ConfirmationResult(ConfirmationStatus.FINALIZED, signature, attempts=attempt)

            if level in ("confirmed", "processed"):
                phase = CONFIRMED_NOT_FINAL
                Logger.debug(f"[VERIFY] Transaction {level}, waiting for finalization...")
            return None

        outcome = poll_until(poll_status, self.policy, sleep=self.sleep, label="VERIFY")
        if outcome.resolved:
            result = outcome.value
            if result.is_final:
                Logger.success(f"[VERIFY] Transaction {signature} finalized on chain")
            return result

        return self._direct_lookup(client, sig, signature, phase, outcome.attempts)

    def _direct_lookup(self, client, sig: Signature, signature: str, phase: str, polled: int) -> ConfirmationResult:
        def lookup(_attempt: int):
            resp = client.get_transaction(sig, commitment=Finalized, max_supported_transaction_version=0)
            return resp.value

        outcome = poll_until(lookup, RetryPolicy(self.lookup_attempts, self.policy.interval), sleep=self.sleep, label="VERIFY")
        attempts = polled + outcome.attempts

        # Every lookup raised: the ledger state is unknown, not absent
        if not outcome.resolved and outcome.attempts and outcome.errors == outcome.attempts:
            detail = f"Direct lookup failed: {outcome.last_error}"
            Logger.error(f"[VERIFY] {detail}")
            return ConfirmationResult(ConfirmationStatus.VERIFICATION_ERROR, signature, attempts=attempts, detail=detail)

        if not outcome.resolved:
            if phase == CONFIRMED_NOT_FINAL:
                detail = "Transaction confirmed but not finalized after maximum retries"
                status = ConfirmationStatus.NOT_FINALIZED
            else:
                detail = "Transaction not found on chain after maximum retries"
                status = ConfirmationStatus.NOT_FOUND
            Logger.warning(f"[VERIFY] {detail}: {signature}")
            return ConfirmationResult(status, signature, attempts=attempts, detail=detail)

        tx = outcome.value
        meta = getattr(tx.transaction, "meta", None)
        err = getattr(meta, "err", None)
        if err is not None:
            Logger.error(f"[VERIFY] Transaction {signature} found on chain but has errors: {err}")
            return ConfirmationResult(ConfirmationStatus.FAILED, signature, on_chain_error=err, attempts=attempts)

        Logger.success(f"[VERIFY] Transaction {signature} found on chain through direct lookup")
        return ConfirmationResult(ConfirmationStatus.FINALIZED, signature, attempts=attempts)
