import json
import os
from dataclasses import dataclass
from typing import Optional

from solana.rpc.types import TokenAccountOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from meme_trader.config.settings import Settings
from meme_trader.shared.infrastructure.connection_provider import ConnectionProvider
from meme_trader.shared.system.logging import Logger


def load_keypair(path: Optional[str] = None, settings=Settings) -> Optional[Keypair]:
    """
    Keypair from SOLANA_PRIVATE_KEY (base58) or a JSON wallet file.

    The file may hold `{"secretKey": [...]}` or a bare 64-byte array.
    """
    if settings.SOLANA_PRIVATE_KEY:
        try:
            return Keypair.from_base58_string(settings.SOLANA_PRIVATE_KEY)
        except Exception as e:
            Logger.error(f"[WALLET] Invalid key format: {e}")
            return None

    path = path or settings.WALLET_PATH
    if not os.path.exists(path):
        Logger.warning(f"[WALLET] Wallet file not found: {path}")
        return None

    try:
        with open(path, "r") as f:
            data = json.load(f)
        secret = data.get("secretKey") if isinstance(data, dict) else data
        return Keypair.from_bytes(bytes(secret))
    except Exception as e:
        Logger.error(f"[WALLET] Failed to load wallet {path}: {e}")
        return None


@dataclass(frozen=True)
class TokenHolding:
    mint: str
    amount_raw: int
    decimals: int

    @property
    def ui_amount(self) -> float:
        return self.amount_raw / (10 ** self.decimals)


class TokenBalanceReader:
    """On-chain SPL balance of one mint for one owner."""

    def __init__(self, connections: ConnectionProvider):
        self.connections = connections

    def get_token_info(self, owner: Pubkey, mint: str) -> Optional[TokenHolding]:
        """Sum of all token accounts of `mint`; None when the wallet holds none."""
        client = self.connections.get("confirmed")
        resp = client.get_token_accounts_by_owner_json_parsed(owner, TokenAccountOpts(mint=Pubkey.from_string(mint)))

        total = 0
        decimals = None
        for account in resp.value or []:
            token_amount = account.account.data.parsed["info"]["tokenAmount"]
            total += int(token_amount["amount"])
            decimals = int(token_amount["decimals"])

        if decimals is None:
            return None
        return TokenHolding(mint=mint, amount_raw=total, decimals=decimals)
