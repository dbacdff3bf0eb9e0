"""Fixed-point scales and protocol constants shared by the accrual engines."""

BPS_SCALE = 10_000  # 100% in basis points
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
MULTIPLIER_SCALE = 1_000_000  # 1.0x

NULL_ACCOUNT = "0x" + "0" * 40


def is_null_account(account) -> bool:
    """True for the null account and for empty identifiers."""
    return account is None or account == "" or account == NULL_ACCOUNT
