"""
Transaction Submitter
=====================
Signs and broadcasts a swap payload. Does not wait for confirmation.

Decoding always tries the versioned wire format first and only then the
legacy one. Legacy transactions carry no budget from the aggregator, so the
compute budget instructions are prepended before signing. Both decodings
failing is the one unrecoverable path of the pipeline.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from solana.exceptions import SolanaRpcException
from solana.rpc.commitment import Confirmed, Processed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.transaction import Transaction, VersionedTransaction

from meme_trader.config.settings import Settings
from meme_trader.execution.instruction_factory import with_compute_budget
from meme_trader.execution.swap_builder import PayloadFormat, SwapPayload
from meme_trader.shared.execution.execution_result import ErrorCode, StageFailure
from meme_trader.shared.execution.fee_estimator import FeeProfile
from meme_trader.shared.infrastructure.connection_provider import ConnectionProvider
from meme_trader.shared.system.logging import Logger


@dataclass(frozen=True)
class Submission:
    signature: str
    payload: SwapPayload
    compute_budget_applied: bool = False


class PayloadDecodeError(Exception):
    """Neither wire format could decode the payload."""

    def __init__(self, versioned_error: Exception, legacy_error: Exception):
        self.versioned_error = versioned_error
        self.legacy_error = legacy_error
        super().__init__(
            f"Transaction deserialization failed: versioned: {versioned_error}; legacy: {legacy_error}"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# DECODING
# ═══════════════════════════════════════════════════════════════════════════════

def decode_versioned(raw: bytes) -> VersionedTransaction:
    return VersionedTransaction.from_bytes(raw)


def decode_legacy(raw: bytes) -> Transaction:
    return Transaction.from_bytes(raw)


def decode_payload(payload: SwapPayload) -> Tuple[SwapPayload, Union[VersionedTransaction, Transaction]]:
    """
    Versioned first, legacy second; never the reverse.

    Returns the payload reclassified to the format that decoded.
    """
    try:
        return payload, decode_versioned(payload.raw_bytes)
    except Exception as versioned_error:
        Logger.debug(f"[SUBMIT] Versioned deserialization failed, falling back to legacy: {versioned_error}")
        try:
            return payload.as_legacy(), decode_legacy(payload.raw_bytes)
        except Exception as legacy_error:
            raise PayloadDecodeError(versioned_error, legacy_error) from legacy_error


# ═══════════════════════════════════════════════════════════════════════════════
# SIGNING
# ═══════════════════════════════════════════════════════════════════════════════

def sign_versioned(tx: VersionedTransaction, keypair: Keypair) -> VersionedTransaction:
    return VersionedTransaction(tx.message, [keypair])


def sign_legacy(tx: Transaction, keypair: Keypair, fee_profile: Optional[FeeProfile]) -> Transaction:
    message = tx.message
    if fee_profile is not None:
        message = with_compute_budget(
            message,
            fee_profile.compute_unit_limit,
            fee_profile.priority_fee_micro_lamports,
        )
    return Transaction([keypair], message, message.recent_blockhash)


def send_options(anti_mev: bool, max_retries: int) -> TxOpts:
    return TxOpts(
        skip_preflight=anti_mev,
        preflight_commitment=Processed if anti_mev else Confirmed,
        max_retries=max_retries,
    )


class TransactionSubmitter:
    def __init__(self, connections: ConnectionProvider, settings=Settings):
        self.connections = connections
        self.settings = settings

    def submit(
        self,
        payload: SwapPayload,
        keypair: Keypair,
        anti_mev: bool,
        fee_profile: Optional[FeeProfile] = None,
    ) -> Union[Submission, StageFailure]:
        try:
            payload, tx = decode_payload(payload)
        except PayloadDecodeError as e:
            Logger.error(f"[SUBMIT] {e}")
            return StageFailure(ErrorCode.SUBMISSION_FAILURE, str(e), raw=e)

        try:
            if payload.format == PayloadFormat.VERSIONED:
                signed = sign_versioned(tx, keypair)
                budget_applied = False
            else:
                signed = sign_legacy(tx, keypair, fee_profile)
                budget_applied = fee_profile is not None
                Logger.info(
                    f"[SUBMIT] Legacy transaction with {len(signed.message.instructions)} instructions "
                    f"(compute budget {'added' if budget_applied else 'unchanged'})"
                )
        except Exception as e:
            Logger.error(f"[SUBMIT] Signing failed: {e}")
            return StageFailure(ErrorCode.SUBMISSION_FAILURE, f"Signing failed: {e}", raw=e)

        opts = send_options(anti_mev, self.settings.SEND_MAX_RETRIES)
        client = self.connections.get("processed" if anti_mev else "confirmed")
        Logger.debug(f"[SUBMIT] Sending {payload.format.value} transaction with {opts}")

        try:
            resp = client.send_raw_transaction(bytes(signed), opts=opts)
        except SolanaRpcException as e:
            Logger.error(f"[SUBMIT] RPC endpoint unreachable: {e}")
            return StageFailure(ErrorCode.CONNECTIVITY_ERROR, f"RPC endpoint unreachable: {e}", raw=e)
        except Exception as e:
            Logger.error(f"[SUBMIT] Transaction rejected: {e}")
            return StageFailure(ErrorCode.SUBMISSION_FAILURE, f"Transaction rejected: {e}", raw=e)

        signature = str(resp.value)
        Logger.success(f"[SUBMIT] Tx Sent: https://solscan.io/tx/{signature}")
        return Submission(signature=signature, payload=payload, compute_budget_applied=budget_applied)
