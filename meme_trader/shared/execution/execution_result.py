"""
Unified Execution Result
========================
Standardized result types for the trade pipeline.

Each stage returns either its value or a StageFailure (the tagged error
side). TradeExecutor folds the stages into exactly one TradeResult, so no
failure escapes the pipeline as an exception.
"""

from dataclasses import dataclass, field
from typing import Optional, Any, Dict
from enum import Enum
import time


class ConfirmationStatus(Enum):
    """Terminal outcomes of finality verification."""

    FINALIZED = "finalized"
    FAILED = "failed"
    NOT_FINALIZED = "not_finalized"
    NOT_FOUND = "not_found"
    VERIFICATION_ERROR = "verification_error"


class ErrorCode(Enum):
    """Standardized error codes for trade failures."""

    # Before submission
    CONNECTIVITY_ERROR = "CONNECTIVITY_ERROR"
    INVALID_INTENT = "INVALID_INTENT"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    QUOTE_UNAVAILABLE = "QUOTE_UNAVAILABLE"
    SWAP_BUILD_FAILURE = "SWAP_BUILD_FAILURE"
    SUBMISSION_FAILURE = "SUBMISSION_FAILURE"

    # After submission (signature is known)
    ON_CHAIN_EXECUTION_ERROR = "ON_CHAIN_EXECUTION_ERROR"
    VERIFICATION_TIMEOUT = "VERIFICATION_TIMEOUT"
    NOT_FOUND = "NOT_FOUND"
    VERIFICATION_ERROR = "VERIFICATION_ERROR"

    # General
    UNKNOWN = "UNKNOWN"


# Confirmation outcome -> error code reported to the caller
CONFIRMATION_ERROR_CODES = {
    ConfirmationStatus.FAILED: ErrorCode.ON_CHAIN_EXECUTION_ERROR,
    ConfirmationStatus.NOT_FINALIZED: ErrorCode.VERIFICATION_TIMEOUT,
    ConfirmationStatus.NOT_FOUND: ErrorCode.NOT_FOUND,
    ConfirmationStatus.VERIFICATION_ERROR: ErrorCode.VERIFICATION_ERROR,
}


@dataclass(frozen=True)
class StageFailure:
    """Error side of a stage result."""

    code: ErrorCode
    message: str
    raw: Any = None

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(frozen=True)
class ConfirmationResult:
    """Outcome of FinalityVerifier.verify()."""

    status: ConfirmationStatus
    signature: str
    on_chain_error: Any = None
    attempts: int = 0
    detail: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.status == ConfirmationStatus.FINALIZED


@dataclass
class TradeResult:
    """
    Result of TradeExecutor.execute_trade().

    Usage:
        result = executor.execute_trade(intent)
        if result.success:
            show(result.signature)
        else:
            handle_error(result.error_code, result.signature)
    """

    success: bool
    direction: Optional[str] = None
    mint: Optional[str] = None

    # Transaction details
    signature: Optional[str] = None
    payload_format: Optional[str] = None

    # Pipeline artifacts
    amount_raw: int = 0
    quote: Any = None  # Quote
    fee_profile: Any = None  # FeeProfile
    confirmation: Optional[ConfirmationResult] = None

    # Error handling
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None
    raw_error: Any = None

    timestamp: float = field(default_factory=time.time)
    latency_ms: float = 0.0

    @property
    def status(self) -> Optional[ConfirmationStatus]:
        return self.confirmation.status if self.confirmation else None

    @property
    def in_amount(self) -> int:
        return self.quote.in_amount if self.quote else 0

    @property
    def out_amount(self) -> int:
        return self.quote.out_amount if self.quote else 0

    @property
    def explorer_url(self) -> Optional[str]:
        if not self.signature:
            return None
        return f"https://solscan.io/tx/{self.signature}"

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for callers that persist trade history."""
        return {
            "success": self.success,
            "direction": self.direction,
            "mint": self.mint,
            "signature": self.signature,
            "status": self.status.value if self.status else None,
            "payload_format": self.payload_format,
            "amount_raw": self.amount_raw,
            "in_amount": self.in_amount,
            "out_amount": self.out_amount,
            "compute_unit_limit": self.fee_profile.compute_unit_limit if self.fee_profile else None,
            "priority_fee_micro_lamports": (
                self.fee_profile.priority_fee_micro_lamports if self.fee_profile else None
            ),
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": self.error_message,
            "timestamp": self.timestamp,
            "latency_ms": self.latency_ms,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════


def success_result(
    signature: str,
    confirmation: ConfirmationResult,
    **kwargs,
) -> TradeResult:
    """Create a result for a finalized trade."""
    return TradeResult(
        success=True,
        signature=signature,
        confirmation=confirmation,
        **kwargs,
    )


def failure_result(
    error_code: ErrorCode,
    error_message: str,
    **kwargs,
) -> TradeResult:
    """Create a failed result."""
    return TradeResult(
        success=False,
        error_code=error_code,
        error_message=error_message,
        **kwargs,
    )


def from_stage_failure(failure: StageFailure, **kwargs) -> TradeResult:
    """Lift a stage failure into a TradeResult."""
    return failure_result(failure.code, failure.message, raw_error=failure.raw, **kwargs)


def from_confirmation(confirmation: ConfirmationResult, **kwargs) -> TradeResult:
    """Success iff the confirmation reached FINALIZED."""
    if confirmation.is_final:
        return success_result(confirmation.signature, confirmation, **kwargs)

    code = CONFIRMATION_ERROR_CODES[confirmation.status]
    message = confirmation.detail or f"Transaction {confirmation.status.value}"
    if confirmation.on_chain_error is not None:
        message = f"{message}: {confirmation.on_chain_error}"
    return failure_result(
        code,
        message,
        signature=confirmation.signature,
        confirmation=confirmation,
        raw_error=confirmation.on_chain_error,
        **kwargs,
    )
