"""Collaborators at the ledger boundary."""

from .authority import Authority, StaticAuthority
from .oracle import InMemoryLiquidityPool, LiquidityToken, PriceOracle

__all__ = [
    "Authority",
    "StaticAuthority",
    "InMemoryLiquidityPool",
    "LiquidityToken",
    "PriceOracle",
]
