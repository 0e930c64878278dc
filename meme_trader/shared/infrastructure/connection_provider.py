"""
Connection Provider
===================
One reusable Solana RPC handle per commitment level.

Instantiated once at process start and passed to the pipeline. Handles are
never mutated after construction, so concurrent trades share them without
locking; two trades racing on an empty slot both end up with equivalent
handles.
"""

import time
from typing import Any, Dict, List, Optional

import requests
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment, Processed, Confirmed, Finalized

from meme_trader.config.settings import Settings
from meme_trader.shared.system.logging import Logger


COMMITMENT_LEVELS: Dict[str, Commitment] = {
    "processed": Processed,
    "confirmed": Confirmed,
    "finalized": Finalized,
}

DEFAULT_LEVEL = "confirmed"


class ConnectionProvider:
    """
    Lazily populated map of commitment level -> solana Client.

    Usage:
        provider = ConnectionProvider()
        client = provider.get("finalized")
    """

    def __init__(self, endpoint: Optional[str] = None, settings=Settings, client_factory=Client):
        self.settings = settings
        self.endpoint = endpoint or settings.RPC_URL
        self._client_factory = client_factory
        self._handles: Dict[str, Client] = {}

    @staticmethod
    def normalize_level(level: Optional[str]) -> str:
        level = (level or "").lower()
        return level if level in COMMITMENT_LEVELS else DEFAULT_LEVEL

    def get(self, level: str = DEFAULT_LEVEL) -> Client:
        """Return the cached handle for `level`, creating it on first use."""
        level = self.normalize_level(level)
        handle = self._handles.get(level)
        if handle is not None:
            return handle

        handle = self._client_factory(
            self.endpoint,
            commitment=COMMITMENT_LEVELS[level],
            timeout=self.settings.RPC_TIMEOUT_S,
            extra_headers={"User-Agent": self.settings.USER_AGENT},
        )
        self._handles[level] = handle
        Logger.debug(f"[RPC] Created {level} connection to {self.endpoint}")
        return handle

    def cached_levels(self) -> List[str]:
        return sorted(self._handles)

    def reset(self, endpoint: Optional[str] = None) -> None:
        """Drop every cached handle, optionally switching endpoint."""
        self._handles = {}
        if endpoint:
            self.endpoint = endpoint
        Logger.info(f"[RPC] All connection instances have been reset ({self.endpoint})")

    # =========================================================================
    # RAW JSON-RPC
    # =========================================================================

    def rpc_call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Plain JSON-RPC POST for methods the typed client does not wrap.

        Returns the `result` member; raises on transport or RPC error.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or []}
        resp = requests.post(
            self.endpoint,
            json=payload,
            timeout=self.settings.RPC_TIMEOUT_S,
            headers={"User-Agent": self.settings.USER_AGENT},
        )
        resp.raise_for_status()
        body = resp.json()
        if "error" in body:
            raise RuntimeError(f"{method} failed: {body['error']}")
        return body.get("result")

    # =========================================================================
    # HEALTH
    # =========================================================================

    def test_connection(self, level: str = DEFAULT_LEVEL) -> bool:
        """getVersion health check. Never raises."""
        try:
            version = self.get(level).get_version().value
            Logger.debug(f"[RPC] Connection OK, Solana version: {version}")
            return True
        except Exception as e:
            Logger.error(f"[RPC] Connection test failed: {e}")
            return False

    def health_report(self) -> Dict[str, Any]:
        """
        Version, slot and latency of the configured endpoint.

        Latency grading: <500ms Good, <1000ms Acceptable, else High.
        Raises if the endpoint is unreachable.
        """
        client = self.get(DEFAULT_LEVEL)

        version = client.get_version().value
        slot = client.get_slot().value

        start = time.time()
        client.get_latest_blockhash()
        latency_ms = (time.time() - start) * 1000

        if latency_ms < 500:
            grade = "Good"
        elif latency_ms < 1000:
            grade = "Acceptable"
        else:
            grade = "High"

        return {
            "endpoint": self.endpoint,
            "version": getattr(version, "solana_core", str(version)),
            "slot": slot,
            "latency_ms": latency_ms,
            "latency_grade": grade,
        }
