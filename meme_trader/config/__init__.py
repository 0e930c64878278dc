from meme_trader.config.settings import Settings

__all__ = ["Settings"]
