"""Tests for the ledger facade: mint, burn, transfer, claim and admin calls.

These tests verify:
- The mint/accrue/burn scenario (1000 -> 1100 -> 100)
- Conservation and cap invariants across operations
- Cooldown gating of claims and transfers
- Typed errors raised before any state change
"""

import threading

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from yieldledger.clock import ManualClock
from yieldledger.engine.constants import BPS_SCALE, NULL_ACCOUNT, SECONDS_PER_YEAR
from yieldledger.engine.errors import (
    InsufficientAmount,
    InsufficientBalance,
    InvalidCooldownPeriod,
    InvalidRecipient,
    InvalidYearlyRate,
    Unauthorized,
)
from yieldledger.engine.events import (
    COOLDOWN_PERIOD_UPDATED,
    REWARDS_CLAIMED,
    STARTED_EARNING,
    TRANSFER,
    YEARLY_RATE_UPDATED,
)
from yieldledger.external.authority import StaticAuthority
from yieldledger.ledger import YieldLedger

YEAR = SECONDS_PER_YEAR
DAY = 86_400


def make_ledger(max_supply: int = 10**15, cooldown: int = DAY, start: int = 0):
    clock = ManualClock(start=start)
    ledger = YieldLedger(
        token_id="YLD",
        authority=StaticAuthority(admin="admin", minters=frozenset({"minter"})),
        yearly_rate=1000,
        min_rate=100,
        max_rate=2000,
        cooldown_period=cooldown,
        max_supply=max_supply,
        clock=clock
    )
    return ledger, clock


def realized_sum(ledger: YieldLedger) -> int:
    return sum(balance.value for _, balance in ledger.base.items())


class TestScenarios:
    """End-to-end accrual scenarios."""

    def test_mint_then_accrue_one_year(self):
        """1000 units at 10% for 365 days read as 1100."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)

        assert ledger.balance_of("alice") == 1100
        assert ledger.realized_balance_of("alice") == 1000
        assert ledger.total_supply() == 1100
        assert ledger.minted_supply == 1000

    def test_burn_after_accrual_leaves_exact_remainder(self):
        """Burning 1000 of the accrued 1100 leaves exactly 100."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)

        ledger.burn("alice", 1000)

        assert ledger.balance_of("alice") == 100
        assert ledger.realized_balance_of("alice") == 100
        assert ledger.minted_supply == 100
        assert realized_sum(ledger) == ledger.minted_supply

    def test_epoch_zero_is_a_valid_start(self):
        """Accounts first touched at timestamp 0 still accrue."""
        ledger, clock = make_ledger(start=0)
        ledger.mint("admin", "alice", 10_000)
        assert ledger.base.get("alice").period_start_timestamp == 0
        clock.advance(YEAR)
        assert ledger.balance_of("alice") == 11_000


class TestMint:
    """Privileged minting."""

    def test_designated_minter_may_mint(self):
        ledger, _ = make_ledger()
        assert ledger.mint("minter", "alice", 50) == 50
        assert ledger.realized_balance_of("alice") == 50

    def test_unauthorized(self):
        """Non-minters are rejected with the caller as value."""
        ledger, _ = make_ledger()
        with pytest.raises(Unauthorized) as exc_info:
            ledger.mint("mallory", "alice", 50)
        assert exc_info.value.value == "mallory"
        assert ledger.minted_supply == 0

    @pytest.mark.parametrize("recipient", [NULL_ACCOUNT, "", None])
    def test_null_recipient(self, recipient):
        ledger, _ = make_ledger()
        with pytest.raises(InvalidRecipient):
            ledger.mint("admin", recipient, 50)

    def test_zero_amount(self):
        ledger, _ = make_ledger()
        with pytest.raises(InsufficientAmount) as exc_info:
            ledger.mint("admin", "alice", 0)
        assert exc_info.value.value == 0

    def test_mint_forces_realization_inside_cooldown(self):
        """A mint realizes pending rewards even inside the cooldown."""
        ledger, clock = make_ledger(cooldown=10 * YEAR)
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)

        ledger.mint("admin", "alice", 1)

        assert ledger.realized_balance_of("alice") == 1101
        assert ledger.state.latest_claim_timestamp["alice"] == YEAR

    def test_emits_started_earning_and_transfer(self):
        ledger, _ = make_ledger()
        ledger.mint("admin", "alice", 1000)
        assert [e.account for e in ledger.events.of_kind(STARTED_EARNING)] == ["alice"]
        transfers = ledger.events.of_kind(TRANSFER)
        assert transfers[-1].amount == 1000
        assert transfers[-1].details["source"] == NULL_ACCOUNT


class TestSupplyCap:
    """Cap truncation for direct and reward mints."""

    def test_direct_mint_truncates(self):
        ledger, _ = make_ledger(max_supply=1000)
        assert ledger.mint("admin", "alice", 800) == 800
        assert ledger.mint("admin", "bob", 500) == 200
        assert ledger.minted_supply == 1000

    def test_mint_at_cap_is_noop(self):
        """No event and no state change once capped."""
        ledger, _ = make_ledger(max_supply=1000)
        ledger.mint("admin", "alice", 1000)
        emitted = len(ledger.events)

        assert ledger.mint("admin", "alice", 10) == 0
        assert len(ledger.events) == emitted
        assert ledger.realized_balance_of("alice") == 1000

    def test_reward_mint_truncates(self):
        """Rewards near the cap fill the room and stop."""
        ledger, clock = make_ledger(max_supply=1050)
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)

        assert ledger.balance_of("alice") == 1050
        assert ledger.total_supply() == 1050
        assert ledger.claim("alice") == 50
        assert ledger.minted_supply == 1050

        clock.advance(YEAR)
        assert ledger.claim("alice") == 0
        assert ledger.minted_supply <= ledger.max_supply


class TestBurn:
    """Holder burns."""

    def test_zero_amount(self):
        ledger, _ = make_ledger()
        ledger.mint("admin", "alice", 10)
        with pytest.raises(InsufficientAmount):
            ledger.burn("alice", 0)

    def test_insufficient_balance_changes_nothing(self):
        """A rejected burn leaves balances, supply and claim time untouched."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)
        emitted = len(ledger.events)

        with pytest.raises(InsufficientBalance) as exc_info:
            ledger.burn("alice", 1101)

        assert exc_info.value.value == 1101
        assert ledger.realized_balance_of("alice") == 1000
        assert ledger.minted_supply == 1000
        assert ledger.state.latest_claim_timestamp["alice"] == 0
        assert len(ledger.events) == emitted

    def test_burn_can_spend_pending_rewards(self):
        """Burn realizes first, so the accrued part is burnable."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)
        ledger.burn("alice", 1100)
        assert ledger.balance_of("alice") == 0
        assert ledger.minted_supply == 0


class TestTransfer:
    """Transfers between holders."""

    def test_moves_value_and_conserves_supply(self):
        ledger, _ = make_ledger()
        ledger.mint("admin", "alice", 1000)
        assert ledger.transfer("alice", "bob", 400) is True

        assert ledger.realized_balance_of("alice") == 600
        assert ledger.realized_balance_of("bob") == 400
        assert realized_sum(ledger) == ledger.minted_supply == 1000

    def test_null_recipient(self):
        ledger, _ = make_ledger()
        ledger.mint("admin", "alice", 1000)
        with pytest.raises(InvalidRecipient):
            ledger.transfer("alice", NULL_ACCOUNT, 1)

    def test_insufficient_balance(self):
        ledger, _ = make_ledger()
        ledger.mint("admin", "alice", 1000)
        with pytest.raises(InsufficientBalance):
            ledger.transfer("alice", "bob", 1001)
        assert ledger.realized_balance_of("alice") == 1000
        assert ledger.base.get("bob") is None

    def test_realizes_sender_once_cooldown_elapsed(self):
        """After the cooldown a transfer can spend freshly realized rewards."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)

        ledger.transfer("alice", "bob", 1100)

        assert ledger.realized_balance_of("alice") == 0
        assert ledger.realized_balance_of("bob") == 1100
        assert ledger.minted_supply == 1100

    def test_only_realized_value_spendable_inside_cooldown(self):
        """Inside the cooldown pending rewards keep accruing but are not spendable."""
        ledger, clock = make_ledger(cooldown=2 * YEAR)
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)

        assert ledger.balance_of("alice") == 1100
        with pytest.raises(InsufficientBalance):
            ledger.transfer("alice", "bob", 1001)
        ledger.transfer("alice", "bob", 1000)

        assert ledger.realized_balance_of("alice") == 0
        # alice's year of accrual is kept in her accumulator
        assert ledger.balance_of("alice") == 100

    def test_recipient_accrues_from_transfer_time(self):
        """Received value earns from the moment it arrives."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 2000)
        ledger.transfer("alice", "bob", 1000)
        clock.advance(YEAR)
        assert ledger.balance_of("bob") == 1100
        assert ledger.balance_of("alice") == 1100

    def test_self_transfer_keeps_balance(self):
        ledger, _ = make_ledger()
        ledger.mint("admin", "alice", 1000)
        ledger.transfer("alice", "alice", 1000)
        assert ledger.realized_balance_of("alice") == 1000

    def test_failed_recipient_planning_changes_nothing(self, monkeypatch):
        """Nothing of the sender is committed when the recipient side fails."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)
        alice = ledger.base.get("alice")
        before = (
            ledger.minted_supply,
            dict(ledger.state.latest_claim_timestamp),
            alice.period_start_timestamp,
            alice.accumulated_balance_per_time,
        )

        original_plan = ledger.policy.plan

        def plan(account, now, force=False, room=None):
            if account == "bob":
                raise RuntimeError("recipient planning failed")
            return original_plan(account, now, force=force, room=room)

        monkeypatch.setattr(ledger.policy, "plan", plan)
        with pytest.raises(RuntimeError):
            ledger.transfer("alice", "bob", 10)

        after = (
            ledger.minted_supply,
            dict(ledger.state.latest_claim_timestamp),
            alice.period_start_timestamp,
            alice.accumulated_balance_per_time,
        )
        assert after == before
        assert ledger.realized_balance_of("alice") == 1000
        assert len(ledger.events.of_kind(REWARDS_CLAIMED)) == 0

    def test_sender_and_recipient_share_cap_room(self):
        """Both realizations of one transfer fit in the remaining supply together."""
        ledger, clock = make_ledger(max_supply=1150)
        ledger.mint("admin", "alice", 1000)
        ledger.mint("admin", "bob", 100)
        clock.advance(YEAR)

        ledger.transfer("alice", "bob", 10)

        assert ledger.minted_supply == 1150
        assert realized_sum(ledger) == 1150
        assert ledger.realized_balance_of("alice") == 1040
        assert ledger.realized_balance_of("bob") == 110


class TestCooldown:
    """Cooldown-gated claims."""

    def test_second_claim_inside_cooldown_is_identical(self):
        """Two claims closer than the cooldown leave the same realized balance."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 10**9)
        clock.advance(2 * DAY)

        first = ledger.claim("alice")
        realized = ledger.realized_balance_of("alice")
        clock.advance(3600)
        second = ledger.claim("alice")

        assert first == 10**9 * 2 * DAY * 1000 // (BPS_SCALE * YEAR)
        assert second == 0
        assert ledger.realized_balance_of("alice") == realized

    def test_accumulated_rewards_survive_cooldown(self):
        """Time accrued while Accumulating is realized at the next eligible claim."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 10**9)
        clock.advance(2 * DAY)
        ledger.claim("alice")
        realized = ledger.realized_balance_of("alice")

        clock.advance(3600)
        ledger.claim("alice")
        clock.advance(DAY)
        minted = ledger.claim("alice")

        assert minted == realized * (DAY + 3600) * 1000 // (BPS_SCALE * YEAR)
        assert len(ledger.events.of_kind(REWARDS_CLAIMED)) == 2

    def test_pending_rewards_breakdown(self):
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(3600)
        breakdown = ledger.pending_rewards("alice")
        assert breakdown["realizable"] is False
        clock.advance(YEAR)
        breakdown = ledger.pending_rewards("alice")
        assert breakdown["realizable"] is True
        assert breakdown["base"] == breakdown["total"]
        assert breakdown["staking"] == {}


class TestAdmin:
    """Rate and cooldown administration."""

    def test_set_yearly_rate(self):
        ledger, _ = make_ledger()
        ledger.set_yearly_rate("admin", 500)
        assert ledger.yearly_rate == 500
        event = ledger.events.of_kind(YEARLY_RATE_UPDATED)[-1]
        assert event.amount == 500
        assert event.details["previous"] == 1000

    @pytest.mark.parametrize("rate", [99, 2001, -1])
    def test_rate_outside_bounds(self, rate):
        ledger, _ = make_ledger()
        with pytest.raises(InvalidYearlyRate) as exc_info:
            ledger.set_yearly_rate("admin", rate)
        assert exc_info.value.value == rate
        assert ledger.yearly_rate == 1000

    def test_rate_requires_admin(self):
        ledger, _ = make_ledger()
        with pytest.raises(Unauthorized):
            ledger.set_yearly_rate("minter", 500)

    def test_set_cooldown_period(self):
        ledger, _ = make_ledger()
        ledger.set_cooldown_period("admin", 3600)
        assert ledger.cooldown_period == 3600
        assert ledger.events.of_kind(COOLDOWN_PERIOD_UPDATED)

    def test_zero_cooldown(self):
        ledger, _ = make_ledger()
        with pytest.raises(InvalidCooldownPeriod):
            ledger.set_cooldown_period("admin", 0)
        assert ledger.cooldown_period == DAY

    def test_constructor_validates(self):
        with pytest.raises(InvalidYearlyRate):
            YieldLedger("YLD", StaticAuthority("admin"), 5000, 100, 2000, DAY, 10**9)
        with pytest.raises(InvalidCooldownPeriod):
            YieldLedger("YLD", StaticAuthority("admin"), 1000, 100, 2000, 0, 10**9)


class TestTimeAndConcurrency:
    """Clock handling and serialized access."""

    def test_clock_going_backwards_is_ignored(self):
        """A clock that jumps back never rewinds accrual."""
        ledger, clock = make_ledger()
        ledger.mint("admin", "alice", 1000)
        clock.advance(YEAR)
        assert ledger.balance_of("alice") == 1100

        clock.now = 10
        assert ledger.balance_of("alice") == 1100

    def test_concurrent_transfers_conserve_supply(self):
        """Parallel writers never lose or create value."""
        ledger, _ = make_ledger()
        accounts = ["a", "b", "c", "d"]
        for account in accounts:
            ledger.mint("admin", account, 1_000_000)

        def worker(offset: int):
            for i in range(200):
                sender = accounts[(i + offset) % 4]
                recipient = accounts[(i + offset + 1) % 4]
                ledger.transfer(sender, recipient, 7)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert realized_sum(ledger) == ledger.minted_supply == 4_000_000
        assert ledger.total_supply() == 4_000_000


class TestRandomSequences:
    """Conservation over seeded random mint/burn/transfer/claim sequences."""

    @pytest.mark.parametrize("seed", [11, 23])
    def test_values_sum_to_minted_supply(self, seed):
        accounts = ["a", "b", "c", "d"]
        max_supply = 50_000
        ledger, clock = make_ledger(max_supply=max_supply)
        rng = np.random.default_rng(seed)

        for _ in range(400):
            clock.advance(int(rng.integers(0, 30 * DAY)))
            account = accounts[int(rng.integers(len(accounts)))]
            held = ledger.realized_balance_of(account)
            op = rng.random()
            if op < 0.25:
                ledger.mint("minter", account, int(rng.integers(1, 5_000)))
            elif op < 0.45 and held:
                ledger.burn(account, int(rng.integers(1, held + 1)))
            elif op < 0.8:
                recipient = accounts[int(rng.integers(len(accounts)))]
                ledger.transfer(account, recipient, int(rng.integers(0, held + 1)))
            else:
                ledger.claim(account)

            assert realized_sum(ledger) == ledger.minted_supply <= max_supply
            assert ledger.minted_supply <= ledger.total_supply() <= max_supply
