"""Supply cap enforcement for every mint, direct or reward-driven."""

from .constants import NULL_ACCOUNT
from .events import TRANSFER, EventLog
from .state import LedgerState


class SupplyCapEnforcer:
    """Clamp mints so minted supply never exceeds the cap.

    Mints above the remaining room are truncated; a mint truncated to zero is
    a silent no-op (no event, no state change).
    """

    def __init__(self, state: LedgerState, events: EventLog):
        self.state = state
        self.events = events

    def clamp(self, amount: int) -> int:
        """Largest mintable part of amount."""
        if amount <= 0:
            return 0
        return min(amount, self.state.remaining_supply)

    def mint(self, account: str, balance, amount: int, timestamp: int) -> int:
        """
        Mint into a realized balance.

        Args:
            account: Receiving account (for the event)
            balance: AccountBalance to credit
            amount: Requested amount
            timestamp: Mint time

        Returns:
            Amount actually minted after truncation
        """
        minted = self.clamp(amount)
        if minted == 0:
            return 0
        balance.value += minted
        self.state.minted_supply += minted
        self.events.emit(TRANSFER, timestamp, account=account, amount=minted, source=NULL_ACCOUNT)
        return minted

    def burn(self, account: str, balance, amount: int, timestamp: int) -> None:
        """Destroy amount from a realized balance. Caller checks sufficiency."""
        balance.value -= amount
        self.state.minted_supply -= amount
        self.events.emit(TRANSFER, timestamp, account=NULL_ACCOUNT, amount=amount, source=account)
