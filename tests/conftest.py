"""
Meme Trader Test Configuration
==============================
Shared fixtures and pytest markers for the test suite.
"""

import pytest

from meme_trader.config.settings import Settings


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def settings():
    """
    Throwaway Settings subclass with deterministic defaults.

    Tests mutate attributes freely; the real Settings class is untouched.
    """

    class TestSettings(Settings):
        RPC_URL = "http://localhost:8899"
        JUPITER_API_URL = "https://jupiter.test/swap/v1"
        JUPITER_API_KEY = ""
        SOLANA_PRIVATE_KEY = ""
        FEE_LEVELS = {
            "low": 5000,
            "medium": 10000,
            "high": 20000,
            "urgent": 30000,
            "custom": 0,
        }
        DEFAULT_FEE = "medium"
        PRIORITY_FEE_MULTIPLIER = 1.0
        DYNAMIC_FEE = False
        ANTI_MEV = True
        SEND_MAX_RETRIES = 3
        VERIFY_MAX_RETRIES = 5
        VERIFY_INTERVAL_S = 0.0
        VERIFY_LOOKUP_ATTEMPTS = 1

    return TestSettings


@pytest.fixture
def token_mint():
    """BONK mint, a real SPL token address."""
    return "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


@pytest.fixture
def jupiter_quote_response():
    """Golden path Jupiter quote response (0.1 SOL -> BONK)."""
    return {
        "inputMint": "So11111111111111111111111111111111111111112",
        "inAmount": "100000000",
        "outputMint": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
        "outAmount": "812345678901",
        "otherAmountThreshold": "804222232112",
        "swapMode": "ExactIn",
        "slippageBps": 100,
        "priceImpactPct": "0.0012",
        "routePlan": [
            {
                "swapInfo": {
                    "ammKey": "AMM_KEY",
                    "label": "Raydium",
                    "inputMint": "So11111111111111111111111111111111111111112",
                    "outputMint": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
                    "inAmount": "100000000",
                    "outAmount": "812345678901",
                    "feeAmount": "250000",
                    "feeMint": "So11111111111111111111111111111111111111112",
                },
                "percent": 100,
            }
        ],
    }
