"""
Jupiter Quote Client
====================
Single round trip to the Jupiter quote endpoint.

No retry here: retrying is the caller's decision. Every unusable answer
(transport error, HTTP error, error body, empty or malformed body) maps to
the same QUOTE_UNAVAILABLE failure.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import requests

from meme_trader.config.settings import Settings
from meme_trader.shared.execution.execution_result import ErrorCode, StageFailure
from meme_trader.shared.system.logging import Logger


@dataclass(frozen=True)
class Quote:
    """Priced route. `raw` is echoed back verbatim in the swap request."""

    in_amount: int
    out_amount: int
    route_plan: Any
    raw: Dict[str, Any] = field(repr=False, compare=False, default_factory=dict)

    @property
    def price(self) -> float:
        """Output units per input unit."""
        return self.out_amount / self.in_amount if self.in_amount else 0.0


def build_jupiter_session(settings=Settings) -> requests.Session:
    """Persistent session with connection pooling."""
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json", "User-Agent": settings.USER_AGENT})
    if settings.JUPITER_API_KEY:
        session.headers.update({"x-api-key": settings.JUPITER_API_KEY})
    return session


def parse_quote(body: Any) -> Optional[Quote]:
    """Quote from a response body, or None when unusable."""
    if isinstance(body, dict) and "data" in body and "outAmount" not in body:
        body = body["data"]
    if isinstance(body, list):
        body = body[0] if body else None
    if not isinstance(body, dict) or not body or body.get("error"):
        return None

    route_plan = body.get("routePlan")
    if not route_plan:
        return None

    try:
        in_amount = int(body["inAmount"])
        out_amount = int(body["outAmount"])
    except (KeyError, TypeError, ValueError):
        return None

    if in_amount <= 0 or out_amount <= 0:
        return None

    return Quote(in_amount=in_amount, out_amount=out_amount, route_plan=route_plan, raw=body)


class QuoteClient:
    def __init__(self, session: Optional[requests.Session] = None, settings=Settings):
        self.settings = settings
        self.base_url = settings.JUPITER_API_URL.rstrip("/")
        self.session = session or build_jupiter_session(settings)

    def quote(
        self,
        input_mint: str,
        output_mint: str,
        amount_raw: int,
        slippage_bps: int,
    ) -> Union[Quote, StageFailure]:
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(int(amount_raw)),
            "slippageBps": int(slippage_bps),
        }
        Logger.debug(f"[QUOTE] Requesting quote: {params}")

        try:
            resp = self.session.get(f"{self.base_url}/quote", params=params, timeout=self.settings.JUPITER_TIMEOUT_S)
        except requests.RequestException as e:
            Logger.error(f"[QUOTE] Quote request failed: {e}")
            return StageFailure(ErrorCode.QUOTE_UNAVAILABLE, f"Quote request failed: {e}")

        if resp.status_code != 200:
            Logger.error(f"[QUOTE] Jupiter API Error: {resp.status_code} - {resp.text}")
            return StageFailure(ErrorCode.QUOTE_UNAVAILABLE, f"Quote HTTP {resp.status_code}", raw=resp.text)

        try:
            body = resp.json()
        except ValueError:
            body = None

        quote = parse_quote(body)
        if quote is None:
            Logger.error("[QUOTE] No usable route in quote response")
            return StageFailure(ErrorCode.QUOTE_UNAVAILABLE, "No routes found", raw=body)

        Logger.info(f"[QUOTE] Route found: in={quote.in_amount} out={quote.out_amount}")
        return quote
