import os
from dotenv import load_dotenv

# Load Environment Variables from the working directory .env
load_dotenv(os.path.join(os.getcwd(), ".env"))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # MEME TRADER CONFIGURATION (Env-Based)
    # ═══════════════════════════════════════════════════════════════════

    SILENT_MODE = _env_bool("SILENT_MODE", False)
    LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))

    # --- Endpoints ---
    RPC_URL = os.getenv("RPC_URL", "https://api.mainnet-beta.solana.com")
    RPC_TIMEOUT_S = _env_float("RPC_TIMEOUT_S", 30.0)
    USER_AGENT = "solana-meme-trader/1.0.0"

    JUPITER_API_URL = os.getenv("JUPITER_API_URL", "https://lite-api.jup.ag/swap/v1")
    JUPITER_API_KEY = os.getenv("JUPITER_API_KEY", "").strip("'\" ")
    JUPITER_TIMEOUT_S = _env_float("JUPITER_TIMEOUT_S", 15.0)

    # --- Wallet ---
    WALLET_PATH = os.getenv("WALLET_PATH", "wallet.json")
    SOLANA_PRIVATE_KEY = os.getenv("SOLANA_PRIVATE_KEY", "")

    # Native SOL (wrapped mint)
    SOL_MINT = "So11111111111111111111111111111111111111112"
    LAMPORTS_PER_SOL = 1_000_000_000

    # ═══════════════════════════════════════════════════════════════════
    # FEE TIERS (compute unit budget per tier)
    # ═══════════════════════════════════════════════════════════════════
    FEE_LEVELS = {
        "low": 5000,
        "medium": 10000,
        "high": 20000,
        "urgent": 30000,
        "custom": _env_int("CUSTOM_FEE", 0),
    }
    DEFAULT_FEE = os.getenv("DEFAULT_FEE", "medium")

    PRIORITY_FEE_MULTIPLIER = _env_float("PRIORITY_FEE_MULTIPLIER", 1.0)  # Ceiling for dynamic fees
    DYNAMIC_FEE = _env_bool("DYNAMIC_FEE", False)
    ANTI_MEV = _env_bool("ANTI_MEV", True)  # skipPreflight + processed preflight

    # ═══════════════════════════════════════════════════════════════════
    # TRADE DEFAULTS
    # ═══════════════════════════════════════════════════════════════════
    SLIPPAGE_PCT = _env_float("SLIPPAGE_PCT", 1.0)  # 1% -> 100 bps
    DEFAULT_BUY_AMOUNT = _env_float("DEFAULT_BUY_AMOUNT", 0.1)  # SOL
    DEFAULT_SELL_PERCENTAGE = _env_float("DEFAULT_SELL_PERCENTAGE", 100.0)
    WRAP_AND_UNWRAP_SOL = True

    # ═══════════════════════════════════════════════════════════════════
    # SUBMISSION & FINALITY
    # ═══════════════════════════════════════════════════════════════════
    SEND_MAX_RETRIES = _env_int("SEND_MAX_RETRIES", 3)
    VERIFY_MAX_RETRIES = _env_int("VERIFY_MAX_RETRIES", 40)
    VERIFY_INTERVAL_S = _env_float("VERIFY_INTERVAL_S", 1.0)
    VERIFY_LOOKUP_ATTEMPTS = _env_int("VERIFY_LOOKUP_ATTEMPTS", 1)

    @classmethod
    def slippage_bps(cls) -> int:
        """Slippage tolerance in basis points."""
        return int(round(cls.SLIPPAGE_PCT * 100))
