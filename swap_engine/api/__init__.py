from . import balances, chains, health, quote, sessions

__all__ = ["balances", "chains", "health", "quote", "sessions"]
