"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP)
- File system (except tmp_path)
"""

import logging

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Inject a mock client or session instead."
        )

    # requests (Jupiter API, raw JSON-RPC) and httpx (solana-py Client)
    monkeypatch.setattr("requests.Session.request", block_network)
    monkeypatch.setattr("httpx.Client.send", block_network)


@pytest.fixture(autouse=True)
def quiet_logger(monkeypatch):
    """No console output and no log files from unit tests."""
    from meme_trader.shared.system import logging as trader_logging

    null_logger = logging.getLogger("MemeTrader.tests")
    null_logger.addHandler(logging.NullHandler())
    null_logger.propagate = False

    monkeypatch.setattr(trader_logging, "_get_file_logger", lambda: null_logger)
    monkeypatch.setattr(trader_logging.Logger, "_silent_mode", True)


# ============================================================================
# EXECUTION FIXTURES
# ============================================================================


@pytest.fixture
def trader_keypair():
    from solders.keypair import Keypair

    return Keypair()


@pytest.fixture
def mock_rpc():
    from tests.mocks.mock_rpc import MockRpcClient

    return MockRpcClient()


@pytest.fixture
def connections(mock_rpc):
    from tests.mocks.mock_rpc import MockConnectionProvider

    return MockConnectionProvider(mock_rpc)
