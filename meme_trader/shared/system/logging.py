"""
Centralized Logger with Rich Console
====================================
Static facade used by every module of the trade pipeline.

Usage:
    from meme_trader.shared.system.logging import Logger

    Logger.info("[QUOTE] Requesting route")
    Logger.success("[SUBMIT] Transaction sent")
    Logger.warning("[FEE] Sampling failed, using fallback")
    Logger.error("[BUILD] All swap shapes exhausted")
    Logger.section("Buy")
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from meme_trader.config.settings import Settings


# Per-run session log file, created on first write
_run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
_file_logger: Optional[logging.Logger] = None


def _get_file_logger() -> logging.Logger:
    global _file_logger
    if _file_logger is not None:
        return _file_logger

    file_logger = logging.getLogger("MemeTrader")
    file_logger.setLevel(logging.DEBUG)
    file_logger.propagate = False
    try:
        os.makedirs(Settings.LOG_DIR, exist_ok=True)
        log_file = os.path.join(Settings.LOG_DIR, f"trader_{_run_id}.log")
        handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        file_logger.addHandler(handler)
    except OSError:
        # Read-only working directory: keep console output only
        file_logger.addHandler(logging.NullHandler())

    _file_logger = file_logger
    return file_logger


# =============================================================================
# SOURCE ICONS (for visual scanning)
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "RPC": "📡",
    "FEE": "⛽",
    "QUOTE": "📊",
    "BUILD": "🧱",
    "SUBMIT": "🚀",
    "VERIFY": "🔍",
    "TRADE": "💰",
    "WALLET": "👛",
}


# =============================================================================
# RICH CONSOLE
# =============================================================================

from rich.console import Console
from rich.text import Text

_console = Console(stderr=True)

LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green bold",
    "WARNING": "yellow",
    "ERROR": "red bold",
    "DEBUG": "dim",
    "CRITICAL": "red bold reverse",
    "SECTION": "magenta bold",
}


# =============================================================================
# LOGGER CLASS
# =============================================================================

class Logger:
    """
    Centralized logger with Rich console output.

    - Color-coded console lines (stderr, so command output stays clean)
    - File logging with rotation
    - Source-based icon prefixes parsed from a leading [SOURCE] tag
    """

    _silent_mode = False
    _verbose = False

    @staticmethod
    def _timestamp() -> str:
        """High-precision timestamp (HH:MM:SS.ms)."""
        now = datetime.now()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d}"

    @staticmethod
    def _parse_source(message: str) -> tuple:
        """Extract [SOURCE] tag from message if present."""
        stripped = message.strip()
        if stripped.startswith("[") and "]" in stripped:
            tag_end = stripped.index("]")
            source = stripped[1:tag_end].upper()
            if 0 < len(source) < 15:
                return source, stripped[tag_end + 1:].strip()
        return "SYSTEM", message

    @staticmethod
    def _format_console(level: str, message: str, source: str) -> None:
        if Logger._silent_mode or Settings.SILENT_MODE:
            return

        ts = Logger._timestamp()
        icon = SOURCE_ICONS.get(source.upper(), "")
        msg_with_icon = f"{icon} {message}" if icon else message

        line = Text()
        line.append(f"{ts} ", style="dim")
        line.append(f"| {level[:8].ljust(8)} ", style=LEVEL_STYLES.get(level, "white"))
        line.append(f"| {source[:10].ljust(10)} | ", style="dim")
        line.append(msg_with_icon)
        _console.print(line)

    @staticmethod
    def _log_to_file(level: int, message: str, source: str = "") -> None:
        full_msg = f"[{source}] {message}" if source else message
        _get_file_logger().log(level, full_msg)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def info(message: str, icon: str = "") -> None:
        source, msg = Logger._parse_source(message)
        if icon:
            msg = f"{icon} {msg}"
        Logger._format_console("INFO", msg, source)
        Logger._log_to_file(logging.INFO, msg, source)

    @staticmethod
    def success(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("SUCCESS", msg, source)
        Logger._log_to_file(logging.INFO, f"✅ {msg}", source)

    @staticmethod
    def warning(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("WARNING", msg, source)
        Logger._log_to_file(logging.WARNING, msg, source)

    @staticmethod
    def error(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("ERROR", msg, source)
        Logger._log_to_file(logging.ERROR, msg, source)

    @staticmethod
    def debug(message: str) -> None:
        """File only, unless verbose mode is on."""
        source, msg = Logger._parse_source(message)
        if Logger._verbose:
            Logger._format_console("DEBUG", msg, source)
        Logger._log_to_file(logging.DEBUG, msg, source)

    @staticmethod
    def critical(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("CRITICAL", f"🛑 {msg}", source)
        Logger._log_to_file(logging.CRITICAL, f"🛑 {msg}", source)

    @staticmethod
    def section(title: str) -> None:
        """Print a section header."""
        if not (Logger._silent_mode or Settings.SILENT_MODE):
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        Logger._log_to_file(logging.INFO, f"=== {title} ===", "SYSTEM")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output."""
        Logger._silent_mode = silent

    @staticmethod
    def set_verbose(verbose: bool) -> None:
        """Echo debug lines to the console (the CLI --verbose flag)."""
        Logger._verbose = verbose
