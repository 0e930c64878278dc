"""
Meme Trader Test Mocks
======================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockConnectionProvider, MockRpcClient, rpc_transport_error, status_entry

__all__ = [
    "MockConnectionProvider",
    "MockRpcClient",
    "rpc_transport_error",
    "status_entry",
]
