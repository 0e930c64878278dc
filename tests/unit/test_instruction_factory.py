"""
InstructionFactory Unit Tests
=============================
Tests for trade intents and compute budget instruction handling.

100% testable without RPC or wallet connections.
"""

import pytest


SOL_MINT = "So11111111111111111111111111111111111111112"
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def _transfer_message(payer, lamports=1000):
    from solders.hash import Hash
    from solders.keypair import Keypair
    from solders.message import Message
    from solders.system_program import TransferParams, transfer

    ix = transfer(TransferParams(from_pubkey=payer, to_pubkey=Keypair().pubkey(), lamports=lamports))
    return Message.new_with_blockhash([ix], payer, Hash.new_unique())


class TestTradeIntentSchemas:
    """Test trade intent validation."""

    def test_buy_intent_creation(self):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        intent = TradeIntent(direction=TradeDirection.BUY, asset_mint=BONK_MINT, quantity=0.1)

        assert intent.quantity == 0.1
        assert intent.slippage_bps == 100
        assert intent.fee_tier == "medium"
        assert intent.anti_mev is True

    def test_buy_swaps_sol_for_asset(self):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        intent = TradeIntent(direction=TradeDirection.BUY, asset_mint=BONK_MINT, quantity=0.1)

        assert intent.input_mint == SOL_MINT
        assert intent.output_mint == BONK_MINT

    def test_sell_swaps_asset_for_sol(self):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        intent = TradeIntent(direction=TradeDirection.SELL, asset_mint=BONK_MINT, quantity_fraction=0.5)

        assert intent.is_sell
        assert intent.input_mint == BONK_MINT
        assert intent.output_mint == SOL_MINT

    def test_intent_is_immutable(self):
        from dataclasses import FrozenInstanceError
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        intent = TradeIntent(direction=TradeDirection.BUY, asset_mint=BONK_MINT, quantity=0.1)

        with pytest.raises(FrozenInstanceError):
            intent.quantity = 5.0

    @pytest.mark.parametrize("kwargs", [
        {"quantity": 0.1, "quantity_fraction": 0.5},
        {},
        {"quantity_fraction": 0.5},
        {"quantity": 0},
        {"quantity": -1.0},
        {"quantity": 0.1, "slippage_bps": -1},
        {"quantity": 0.1, "slippage_bps": 10_001},
    ])
    def test_invalid_buy_intents_rejected(self, kwargs):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        with pytest.raises(ValueError):
            TradeIntent(direction=TradeDirection.BUY, asset_mint=BONK_MINT, **kwargs)

    @pytest.mark.parametrize("fraction", [0.0, -0.1, 1.01])
    def test_sell_fraction_bounds(self, fraction):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        with pytest.raises(ValueError):
            TradeIntent(direction=TradeDirection.SELL, asset_mint=BONK_MINT, quantity_fraction=fraction)

    def test_sell_full_balance_allowed(self):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        intent = TradeIntent(direction=TradeDirection.SELL, asset_mint=BONK_MINT, quantity_fraction=1.0)

        assert intent.quantity_fraction == 1.0

    def test_missing_mint_rejected(self):
        from meme_trader.execution.instruction_factory import TradeDirection, TradeIntent

        with pytest.raises(ValueError):
            TradeIntent(direction=TradeDirection.BUY, asset_mint="", quantity=0.1)


class TestComputeBudget:
    """Test compute budget instruction building."""

    def test_price_comes_before_limit(self):
        from solders.compute_budget import ID
        from meme_trader.execution.instruction_factory import build_compute_budget_instructions

        ixs = build_compute_budget_instructions(10_000, 2_000)

        assert len(ixs) == 2
        assert all(ix.program_id == ID for ix in ixs)
        assert bytes(ixs[0].data)[0] == 3  # SetComputeUnitPrice
        assert bytes(ixs[1].data)[0] == 2  # SetComputeUnitLimit

    def test_zero_price_is_omitted(self):
        from meme_trader.execution.instruction_factory import build_compute_budget_instructions

        ixs = build_compute_budget_instructions(10_000, 0)

        assert len(ixs) == 1
        assert bytes(ixs[0].data)[0] == 2

    def test_limit_is_encoded_little_endian(self):
        from meme_trader.execution.instruction_factory import build_compute_budget_instructions

        (limit_ix,) = build_compute_budget_instructions(20_000)

        assert int.from_bytes(bytes(limit_ix.data)[1:5], "little") == 20_000

    def test_budget_instruction_detection(self, trader_keypair):
        from meme_trader.execution.instruction_factory import (
            build_compute_budget_instructions,
            decompile_instructions,
            is_compute_budget_instruction,
        )

        transfer_ix = decompile_instructions(_transfer_message(trader_keypair.pubkey()))[0]

        assert not is_compute_budget_instruction(transfer_ix)
        assert all(is_compute_budget_instruction(ix) for ix in build_compute_budget_instructions(1, 1))


class TestLegacyMessageRewrite:
    """Test decompile + compute budget prefix on legacy messages."""

    def test_decompile_recovers_account_flags(self, trader_keypair):
        from solders.system_program import ID as SYSTEM_PROGRAM_ID
        from meme_trader.execution.instruction_factory import decompile_instructions

        (ix,) = decompile_instructions(_transfer_message(trader_keypair.pubkey()))

        assert ix.program_id == SYSTEM_PROGRAM_ID
        payer_meta, recipient_meta = ix.accounts
        assert payer_meta.pubkey == trader_keypair.pubkey()
        assert payer_meta.is_signer and payer_meta.is_writable
        assert not recipient_meta.is_signer and recipient_meta.is_writable

    def test_prefix_precedes_swap_instructions(self, trader_keypair):
        from solders.system_program import ID as SYSTEM_PROGRAM_ID
        from meme_trader.execution.instruction_factory import decompile_instructions, with_compute_budget

        message = _transfer_message(trader_keypair.pubkey())
        rebuilt = with_compute_budget(message, 10_000, 2_000)
        ixs = decompile_instructions(rebuilt)

        assert [bytes(ix.data)[0] for ix in ixs[:2]] == [3, 2]
        assert ixs[2].program_id == SYSTEM_PROGRAM_ID

    def test_payer_and_blockhash_preserved(self, trader_keypair):
        from meme_trader.execution.instruction_factory import fee_payer, with_compute_budget

        message = _transfer_message(trader_keypair.pubkey())
        rebuilt = with_compute_budget(message, 10_000, 2_000)

        assert fee_payer(rebuilt) == trader_keypair.pubkey()
        assert rebuilt.recent_blockhash == message.recent_blockhash

    def test_existing_budget_instructions_replaced(self, trader_keypair):
        from meme_trader.execution.instruction_factory import (
            decompile_instructions,
            is_compute_budget_instruction,
            with_compute_budget,
        )

        once = with_compute_budget(_transfer_message(trader_keypair.pubkey()), 10_000, 1_000)
        twice = with_compute_budget(once, 20_000, 4_000)
        ixs = decompile_instructions(twice)

        assert len(ixs) == 3
        assert sum(1 for ix in ixs if is_compute_budget_instruction(ix)) == 2
        assert int.from_bytes(bytes(ixs[1].data)[1:5], "little") == 20_000
