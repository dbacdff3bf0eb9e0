"""Liquidity-pool boundary: the read-only price feed and LP-token escrow."""

from typing import Dict, Protocol, Tuple, runtime_checkable

from ..engine.errors import InsufficientBalance, OracleError


@runtime_checkable
class PriceOracle(Protocol):
    """Read-only view of a two-asset liquidity pool."""

    def reserves(self) -> Tuple[int, int]:
        ...

    def base_token(self) -> str:
        ...

    def pool_total_supply(self) -> int:
        ...


@runtime_checkable
class LiquidityToken(Protocol):
    """Escrow surface of the pool's liquidity token."""

    def transfer_from(self, owner: str, recipient: str, amount: int) -> None:
        ...

    def transfer(self, recipient: str, amount: int) -> None:
        ...


class InMemoryLiquidityPool:
    """Deterministic liquidity pool that is both price oracle and LP token.

    reserve_a belongs to base_token; reserve_b to the paired asset. The
    custodian is the account the token's own transfer() pays out from (the
    ledger that escrows stakes).
    """

    def __init__(
        self,
        base_token: str,
        reserve_a: int,
        reserve_b: int,
        total_supply: int,
        custodian: str = "ledger"
    ):
        self._base_token = base_token
        self.reserve_a = reserve_a
        self.reserve_b = reserve_b
        self.total_supply = total_supply
        self.custodian = custodian
        self.balances: Dict[str, int] = {}
        self.available = True

    # PriceOracle

    def reserves(self) -> Tuple[int, int]:
        if not self.available:
            raise OracleError("reserves unavailable")
        return self.reserve_a, self.reserve_b

    def base_token(self) -> str:
        return self._base_token

    def pool_total_supply(self) -> int:
        if not self.available:
            raise OracleError("total supply unavailable")
        return self.total_supply

    # LiquidityToken

    def credit(self, holder: str, amount: int) -> None:
        """Hand out LP tokens (pool deposit), growing total supply."""
        self.balances[holder] = self.balances.get(holder, 0) + amount
        self.total_supply += amount

    def balance_of(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    def transfer_from(self, owner: str, recipient: str, amount: int) -> None:
        held = self.balances.get(owner, 0)
        if amount > held:
            raise InsufficientBalance("LP balance too low", amount)
        self.balances[owner] = held - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

    def transfer(self, recipient: str, amount: int) -> None:
        self.transfer_from(self.custodian, recipient, amount)
