"""
Instruction Factory
===================
Pure, deterministic trade intents and Solana instruction handling.

100% testable without RPC or wallet connections.

Responsibilities:
- Trade intent schema (buy / sell)
- Compute budget instructions
- Decompile a legacy message into instructions and rebuild it with a
  compute budget prefix
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from solders.compute_budget import ID as COMPUTE_BUDGET_PROGRAM_ID
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import Message
from solders.pubkey import Pubkey

from meme_trader.config.settings import Settings


# ═══════════════════════════════════════════════════════════════════════════════
# TRADE INTENT SCHEMAS
# ═══════════════════════════════════════════════════════════════════════════════

class TradeDirection(Enum):
    """Direction of a trade."""
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class TradeIntent:
    """
    Intent for a single swap against native SOL.

    BUY:  `quantity` is the SOL amount to spend.
    SELL: either `quantity` (raw token units) or `quantity_fraction`
          (share of the wallet balance, 0 < f <= 1).
    """

    direction: TradeDirection
    asset_mint: str
    quantity: Optional[float] = None
    quantity_fraction: Optional[float] = None
    slippage_bps: int = 100
    fee_tier: str = "medium"
    anti_mev: bool = True

    def __post_init__(self):
        if not self.asset_mint:
            raise ValueError("asset_mint is required")
        if (self.quantity is None) == (self.quantity_fraction is None):
            raise ValueError("Exactly one of quantity or quantity_fraction must be set")
        if self.direction == TradeDirection.BUY and self.quantity is None:
            raise ValueError("A buy needs an explicit SOL quantity")
        if self.quantity is not None and not self.quantity > 0:
            raise ValueError(f"quantity must be > 0, got {self.quantity}")
        if self.quantity_fraction is not None and not 0 < self.quantity_fraction <= 1:
            raise ValueError(f"quantity_fraction must be in (0, 1], got {self.quantity_fraction}")
        if not 0 <= self.slippage_bps <= 10_000:
            raise ValueError(f"slippage_bps must be in [0, 10000], got {self.slippage_bps}")

    @property
    def is_sell(self) -> bool:
        return self.direction == TradeDirection.SELL

    @property
    def input_mint(self) -> str:
        return self.asset_mint if self.is_sell else Settings.SOL_MINT

    @property
    def output_mint(self) -> str:
        return Settings.SOL_MINT if self.is_sell else self.asset_mint


# ═══════════════════════════════════════════════════════════════════════════════
# COMPUTE BUDGET
# ═══════════════════════════════════════════════════════════════════════════════

SET_COMPUTE_UNIT_LIMIT_TAG = 2
SET_COMPUTE_UNIT_PRICE_TAG = 3


def build_compute_budget_instructions(
    compute_unit_limit: int,
    priority_fee_micro_lamports: int = 0,
) -> List[Instruction]:
    """
    Budget prefix for a legacy transaction.

    Order is [SetComputeUnitPrice?, SetComputeUnitLimit?]; either is
    omitted when its value is not positive.
    """
    ixs: List[Instruction] = []
    if priority_fee_micro_lamports > 0:
        ixs.append(set_compute_unit_price(int(priority_fee_micro_lamports)))
    if compute_unit_limit > 0:
        ixs.append(set_compute_unit_limit(int(compute_unit_limit)))
    return ixs


def is_compute_budget_instruction(ix: Instruction) -> bool:
    """True for SetComputeUnitLimit / SetComputeUnitPrice."""
    data = bytes(ix.data)
    return (
        ix.program_id == COMPUTE_BUDGET_PROGRAM_ID
        and len(data) > 0
        and data[0] in (SET_COMPUTE_UNIT_LIMIT_TAG, SET_COMPUTE_UNIT_PRICE_TAG)
    )


# ═══════════════════════════════════════════════════════════════════════════════
# LEGACY MESSAGE REWRITE
# ═══════════════════════════════════════════════════════════════════════════════

def _account_flags(message: Message, index: int) -> tuple:
    header = message.header
    n_keys = len(message.account_keys)
    n_signed = header.num_required_signatures

    is_signer = index < n_signed
    if is_signer:
        is_writable = index < n_signed - header.num_readonly_signed_accounts
    else:
        is_writable = index < n_keys - header.num_readonly_unsigned_accounts
    return is_signer, is_writable


def decompile_instructions(message: Message) -> List[Instruction]:
    """Expand a legacy message's compiled instructions."""
    keys = message.account_keys
    instructions = []
    for compiled in message.instructions:
        metas = []
        for idx in bytes(compiled.accounts):
            is_signer, is_writable = _account_flags(message, idx)
            metas.append(AccountMeta(keys[idx], is_signer, is_writable))
        instructions.append(Instruction(keys[compiled.program_id_index], bytes(compiled.data), metas))
    return instructions


def fee_payer(message: Message) -> Pubkey:
    return message.account_keys[0]


def with_compute_budget(
    message: Message,
    compute_unit_limit: int,
    priority_fee_micro_lamports: int = 0,
) -> Message:
    """
    Rebuild a legacy message with the budget instructions ahead of every
    swap instruction. Budget instructions already present are replaced.
    Fee payer and blockhash are preserved.
    """
    prefix = build_compute_budget_instructions(compute_unit_limit, priority_fee_micro_lamports)
    swap_ixs = [ix for ix in decompile_instructions(message) if not (prefix and is_compute_budget_instruction(ix))]
    blockhash: Hash = message.recent_blockhash
    return Message.new_with_blockhash(prefix + swap_ixs, fee_payer(message), blockhash)
