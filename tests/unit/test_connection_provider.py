"""
Connection Provider Unit Tests
==============================
Handle caching per commitment level, reset and health checks.
"""

import pytest
from unittest.mock import MagicMock


@pytest.fixture
def client_factory():
    return MagicMock(side_effect=lambda *args, **kwargs: MagicMock(name=f"client-{kwargs['commitment']}"))


@pytest.fixture
def provider(settings, client_factory):
    from meme_trader.shared.infrastructure.connection_provider import ConnectionProvider

    return ConnectionProvider(settings=settings, client_factory=client_factory)


class TestHandles:
    def test_handle_reused_per_level(self, provider, client_factory):
        first = provider.get("finalized")
        second = provider.get("finalized")

        assert first is second
        assert client_factory.call_count == 1

    def test_one_handle_per_level(self, provider, client_factory):
        from solana.rpc.commitment import Processed, Confirmed, Finalized

        provider.get("processed")
        provider.get("confirmed")
        provider.get("finalized")

        commitments = [call.kwargs["commitment"] for call in client_factory.call_args_list]
        assert commitments == [Processed, Confirmed, Finalized]
        assert provider.cached_levels() == ["confirmed", "finalized", "processed"]

    def test_client_configuration(self, provider, client_factory, settings):
        provider.get("confirmed")

        args, kwargs = client_factory.call_args
        assert args == ("http://localhost:8899",)
        assert kwargs["timeout"] == settings.RPC_TIMEOUT_S
        assert kwargs["extra_headers"] == {"User-Agent": settings.USER_AGENT}

    @pytest.mark.parametrize("level", [None, "", "max", "recent"])
    def test_unknown_level_defaults_to_confirmed(self, provider, level):
        assert provider.get(level) is provider.get("confirmed")

    def test_reset_drops_handles(self, provider, client_factory):
        before = provider.get("confirmed")
        provider.reset()

        assert provider.cached_levels() == []
        assert provider.get("confirmed") is not before
        assert client_factory.call_count == 2

    def test_reset_switches_endpoint(self, provider, client_factory):
        provider.reset("https://rpc.example.org")
        provider.get("confirmed")

        assert provider.endpoint == "https://rpc.example.org"
        assert client_factory.call_args[0] == ("https://rpc.example.org",)


class TestHealth:
    def test_connection_ok(self, provider):
        assert provider.test_connection() is True

    def test_connection_failure_never_raises(self, provider):
        provider.get("confirmed").get_version.side_effect = ConnectionError("refused")

        assert provider.test_connection("confirmed") is False

    def test_health_report(self, provider):
        from types import SimpleNamespace

        client = provider.get("confirmed")
        client.get_version.return_value = SimpleNamespace(value=SimpleNamespace(solana_core="1.18.22"))
        client.get_slot.return_value = SimpleNamespace(value=250_000_000)

        report = provider.health_report()

        assert report["version"] == "1.18.22"
        assert report["slot"] == 250_000_000
        assert report["latency_grade"] == "Good"
        assert report["endpoint"] == "http://localhost:8899"


class TestRawRpc:
    def test_returns_result(self, provider, monkeypatch):
        from meme_trader.shared.infrastructure import connection_provider

        response = MagicMock()
        response.json.return_value = {"jsonrpc": "2.0", "id": 1, "result": [{"slot": 1, "prioritizationFee": 0}]}
        post = MagicMock(return_value=response)
        monkeypatch.setattr(connection_provider.requests, "post", post)

        assert provider.rpc_call("getRecentPrioritizationFees") == [{"slot": 1, "prioritizationFee": 0}]
        assert post.call_args.kwargs["json"]["method"] == "getRecentPrioritizationFees"

    def test_rpc_error_raises(self, provider, monkeypatch):
        from meme_trader.shared.infrastructure import connection_provider

        response = MagicMock()
        response.json.return_value = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "Method not found"}}
        monkeypatch.setattr(connection_provider.requests, "post", MagicMock(return_value=response))

        with pytest.raises(RuntimeError):
            provider.rpc_call("getRecentPrioritizationFees")
