"""
Swap Builder
============
Turns a Quote into an unsigned, encoded swap transaction.

The aggregation service has shipped several request/response layouts. Both
sides are modelled as ordered lists of pure functions: request shapes are
tried in priority order and, for each response, extractors are tried in
order. The first response that yields decodable transaction bytes wins.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import requests

from meme_trader.config.settings import Settings
from meme_trader.execution.quote_client import Quote, build_jupiter_session
from meme_trader.shared.execution.execution_result import ErrorCode, StageFailure
from meme_trader.shared.system.logging import Logger


class PayloadFormat(Enum):
    VERSIONED = "versioned"
    LEGACY = "legacy"


@dataclass(frozen=True)
class SwapPayload:
    """
    Encoded swap transaction.

    Tagged VERSIONED at build time; the submitter reclassifies it LEGACY if
    versioned decoding fails.
    """

    format: PayloadFormat
    raw_bytes: bytes = b""

    def as_legacy(self) -> "SwapPayload":
        return SwapPayload(PayloadFormat.LEGACY, self.raw_bytes)


# ═══════════════════════════════════════════════════════════════════════════════
# REQUEST SHAPES
# ═══════════════════════════════════════════════════════════════════════════════

RequestShape = Callable[[Dict[str, Any], str, bool], Dict[str, Any]]


def combined_quote_request(quote: Dict[str, Any], user: str, wrap: bool) -> Dict[str, Any]:
    return {"quoteResponse": quote, "userPublicKey": user, "wrapAndUnwrapSol": wrap}


def nested_quote_response_request(quote: Dict[str, Any], user: str, wrap: bool) -> Dict[str, Any]:
    return {"swapRequest": {"quoteResponse": quote, "userPublicKey": user, "wrapUnwrapSOL": wrap}}


def nested_route_request(quote: Dict[str, Any], user: str, wrap: bool) -> Dict[str, Any]:
    return {"swapRequest": {"route": quote, "userPublicKey": user, "wrapUnwrapSOL": wrap}}


REQUEST_SHAPES: List[Tuple[str, RequestShape]] = [
    ("quoteResponse", combined_quote_request),
    ("swapRequest.quoteResponse", nested_quote_response_request),
    ("swapRequest.route", nested_route_request),
]


# ═══════════════════════════════════════════════════════════════════════════════
# RESPONSE EXTRACTORS
# ═══════════════════════════════════════════════════════════════════════════════

MIN_TRANSACTION_CHARS = 100


def top_level_transaction(body: Dict[str, Any]) -> Optional[str]:
    value = body.get("swapTransaction")
    return value if isinstance(value, str) and value else None


def data_transaction(body: Dict[str, Any]) -> Optional[str]:
    data = body.get("data")
    if isinstance(data, dict):
        value = data.get("swapTransaction")
        if isinstance(value, str) and value:
            return value
    return None


def any_data_transaction(body: Dict[str, Any]) -> Optional[str]:
    """Last resort: first long string field under `data`."""
    data = body.get("data")
    if isinstance(data, dict):
        for value in data.values():
            if isinstance(value, str) and len(value) > MIN_TRANSACTION_CHARS:
                return value
    return None


RESPONSE_EXTRACTORS: List[Callable[[Dict[str, Any]], Optional[str]]] = [
    top_level_transaction,
    data_transaction,
    any_data_transaction,
]


def decode_transaction_field(value: str) -> Optional[bytes]:
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None
    return raw or None


def extract_transaction_bytes(body: Any) -> Optional[bytes]:
    """Apply the extractors in order; first decodable string wins."""
    if not isinstance(body, dict):
        return None
    for extractor in RESPONSE_EXTRACTORS:
        value = extractor(body)
        if value is None:
            continue
        raw = decode_transaction_field(value)
        if raw is not None:
            return raw
    return None


# ═══════════════════════════════════════════════════════════════════════════════
# BUILDER
# ═══════════════════════════════════════════════════════════════════════════════

class SwapBuilder:
    def __init__(self, session: Optional[requests.Session] = None, settings=Settings, shapes=None):
        self.settings = settings
        self.base_url = settings.JUPITER_API_URL.rstrip("/")
        self.session = session or build_jupiter_session(settings)
        self.shapes = shapes or REQUEST_SHAPES

    def _post(self, name: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            resp = self.session.post(f"{self.base_url}/swap", json=payload, timeout=self.settings.JUPITER_TIMEOUT_S)
        except requests.RequestException as e:
            Logger.debug(f"[BUILD] Shape {name} request failed: {e}")
            return None

        if resp.status_code != 200:
            Logger.debug(f"[BUILD] Shape {name} rejected: {resp.status_code} - {resp.text}")
            return None

        try:
            return resp.json()
        except ValueError:
            Logger.debug(f"[BUILD] Shape {name} returned a non-JSON body")
            return None

    def build(self, quote: Quote, trader_pubkey: str, wrap_native: bool = True) -> Union[SwapPayload, StageFailure]:
        for name, shape in self.shapes:
            Logger.debug(f"[BUILD] Attempting swap request shape {name}")
            body = self._post(name, shape(quote.raw, str(trader_pubkey), wrap_native))
            raw = extract_transaction_bytes(body)
            if raw is not None:
                Logger.info(f"[BUILD] Swap transaction received ({len(raw)} bytes, shape {name})")
                return SwapPayload(PayloadFormat.VERSIONED, raw)

        Logger.error("[BUILD] Failed to get swap transaction after all request shapes")
        return StageFailure(
            ErrorCode.SWAP_BUILD_FAILURE,
            f"No swap transaction after {len(self.shapes)} request shapes",
        )
