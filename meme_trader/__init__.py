"""Meme Trader - Jupiter swap execution for Solana."""

__version__ = "1.0.0"
