"""
Adaptive Fee Estimator
======================
Compute budget and priority fee bid for a single trade.

Inputs: fee tier, trade direction, share of the holding being sold, and an
optional live sample of recent prioritization fees. The estimate is a pure
function of those inputs; sampling failures only ever degrade the result to
a less dynamic fee, they never raise.
"""

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from meme_trader.config.settings import Settings
from meme_trader.execution.instruction_factory import TradeDirection
from meme_trader.shared.system.logging import Logger


@dataclass(frozen=True)
class FeeProfile:
    """Compute budget for a trade."""

    compute_unit_limit: int
    priority_fee_micro_lamports: int
    fee_tier: str  # Tier actually applied (after any upgrade)
    source: str  # "custom", "dynamic", "fallback" or "static"


# A sampler returns raw prioritization fee observations (micro-lamports/CU)
FeeSampler = Callable[[], Sequence[int]]


class FeeEstimator:
    """
    Fee tier policy:

    1. A sell of >= SELL_UPGRADE_FRACTION on the middle tier is upgraded one
       tier up.
    2. `custom` with a configured nonzero value is used verbatim.
    3. Dynamic mode scales the tier fee by recent network priority fees,
       clipped to the configured multiplier ceiling.
    4. Otherwise the static tier fee.
    """

    TIER_ORDER = ("low", "medium", "high", "urgent")
    SELL_UPGRADE_TIER = "medium"
    SELL_UPGRADE_FRACTION = 0.5

    SAMPLE_SIZE = 5
    REFERENCE_FEE = 5000  # micro-lamports per CU treated as "normal" load

    LARGE_SELL_FRACTION = 0.75
    LARGE_SELL_BOOST = 1.5
    SELL_BOOST = 1.2
    BUY_BOOST = 1.0
    SELL_CEILING_FACTOR = 1.5

    PRIORITY_FEE_DIVISOR = 10  # priority fee = limit / 10 * multiplier

    def __init__(self, sampler: Optional[FeeSampler] = None, settings=Settings):
        self.sampler = sampler
        self.settings = settings

    # =========================================================================
    # TIERS
    # =========================================================================

    def resolve_tier(self, fee_tier: Optional[str], direction: TradeDirection, quantity_fraction: float) -> str:
        levels = self.settings.FEE_LEVELS
        tier = (fee_tier or self.settings.DEFAULT_FEE).lower()

        if tier not in levels or (tier == "custom" and not levels.get("custom")):
            tier = self.settings.DEFAULT_FEE.lower()
            if tier not in levels or tier == "custom":
                tier = "medium"

        if (
            direction == TradeDirection.SELL
            and quantity_fraction >= self.SELL_UPGRADE_FRACTION
            and tier == self.SELL_UPGRADE_TIER
        ):
            upgraded = self.TIER_ORDER[self.TIER_ORDER.index(tier) + 1]
            Logger.debug(f"[FEE] Upgraded fee tier {tier} -> {upgraded} for large sell")
            tier = upgraded

        return tier

    def boost_for(self, direction: TradeDirection, quantity_fraction: float) -> float:
        if direction != TradeDirection.SELL:
            return self.BUY_BOOST
        if quantity_fraction >= self.LARGE_SELL_FRACTION:
            return self.LARGE_SELL_BOOST
        return self.SELL_BOOST

    # =========================================================================
    # NETWORK SAMPLE
    # =========================================================================

    def sample_network(self) -> List[int]:
        """Most recent observations; raises on sampler failure."""
        if self.sampler is None:
            return []
        observations = [int(fee) for fee in self.sampler()]
        return observations[: self.SAMPLE_SIZE]

    def dynamic_limit(self, base_fee: int, direction: TradeDirection, quantity_fraction: float) -> tuple:
        """Return (limit, source)."""
        ceiling = self.settings.PRIORITY_FEE_MULTIPLIER
        fallback = math.floor(base_fee * ceiling)

        try:
            observations = self.sample_network()
        except Exception as e:
            Logger.warning(f"[FEE] Error getting prioritization fees, using default multiplier: {e}")
            return fallback, "fallback"

        if not observations:
            Logger.debug(f"[FEE] No fee observations, using default multiplier {ceiling}")
            return fallback, "fallback"

        avg = sum(observations) / len(observations)
        multiplier = max(1.0, avg / self.REFERENCE_FEE)
        boost = self.boost_for(direction, quantity_fraction)
        clip = ceiling * self.SELL_CEILING_FACTOR if direction == TradeDirection.SELL else ceiling

        limit = math.floor(base_fee * min(multiplier * boost, clip))
        Logger.debug(
            f"[FEE] Dynamic fee: base={base_fee} avg={avg:.0f} multiplier={multiplier:.2f} "
            f"boost={boost} clip={clip} -> {limit}"
        )
        return limit, "dynamic"

    # =========================================================================
    # ESTIMATE
    # =========================================================================

    def estimate(
        self,
        fee_tier: Optional[str],
        direction: TradeDirection,
        quantity_fraction: Optional[float] = None,
    ) -> FeeProfile:
        fraction = quantity_fraction or 0.0
        tier = self.resolve_tier(fee_tier, direction, fraction)
        base_fee = int(self.settings.FEE_LEVELS[tier])

        if tier == "custom":
            limit, source = base_fee, "custom"
        elif self.settings.DYNAMIC_FEE:
            limit, source = self.dynamic_limit(base_fee, direction, fraction)
        else:
            limit, source = base_fee, "static"

        priority_fee = 0
        multiplier = self.settings.PRIORITY_FEE_MULTIPLIER
        if multiplier > 1:
            boost = self.boost_for(direction, fraction)
            priority_fee = math.floor((limit / self.PRIORITY_FEE_DIVISOR) * multiplier * boost)

        profile = FeeProfile(
            compute_unit_limit=limit,
            priority_fee_micro_lamports=priority_fee,
            fee_tier=tier,
            source=source,
        )
        Logger.info(
            f"[FEE] {direction.value} tier={tier} ({source}): "
            f"{limit} CU, priority {priority_fee} microLamports"
        )
        return profile


def rpc_fee_sampler(provider) -> FeeSampler:
    """Sampler over getRecentPrioritizationFees, newest slot first."""

    def sample() -> List[int]:
        result = provider.rpc_call("getRecentPrioritizationFees", []) or []
        ordered = sorted(result, key=lambda entry: entry.get("slot", 0), reverse=True)
        return [entry.get("prioritizationFee", 0) for entry in ordered]

    return sample
