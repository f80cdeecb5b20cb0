"""examples/basic_usage.py - taglog integration demo.

Demonstrates two usage levels:
    Scenario A: explicit tags across layers, exported only if a step failed
    Scenario B: handler-only, existing logging calls feed the tag via ``extra``
"""

import logging

import taglog
from taglog import Level, TagLogHandler, exporting, traced

# ---------------------------------------------------------------------------
# Standard logger setup (no changes from what a developer already has)
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("app")

# ---------------------------------------------------------------------------
# taglog integration: one line added to the existing setup
# ---------------------------------------------------------------------------
logging.getLogger().addHandler(TagLogHandler(export_on_error=True))


# ===========================================================================
# Scenario A: explicit tags (plus @traced for call/return lines)
# ===========================================================================


@traced("payment")
def get_balance(user_id: int) -> int:
    """Simulate a DB balance query (repository layer)."""
    taglog.tag("payment", {"query": "balance", "user_id": user_id})
    return 3_000


def pay(user_id: int, amount: int) -> None:
    """Simulate a payment flow (service layer)."""
    taglog.tag("payment", f"Payment attempt: user_id={user_id}, amount={amount}", level=Level.INFO)
    balance = get_balance(user_id)

    if balance < amount:
        raise ValueError(f"InsufficientFunds: balance={balance}, amount={amount}")

    taglog.tag("payment", "Payment successful", level=Level.INFO)


# ===========================================================================
# Scenario B: handler-only (standard logging calls carry the tag)
# ===========================================================================


def pay_plain(user_id: int, amount: int) -> None:
    """Simulate a payment flow using standard logging only."""
    logger.info(f"Payment attempt: user_id={user_id}, amount={amount}", extra={"tag": "legacy-payment"})
    balance = 3_000
    logger.debug(f"Balance loaded: {balance}", extra={"tag": "legacy-payment"})

    if balance < amount:
        # The ERROR exports the whole "legacy-payment" tag to stderr.
        logger.error(
            f"Insufficient funds (balance={balance}, requested={amount})",
            extra={"tag": "legacy-payment"},
        )
        return

    logger.info("Payment successful", extra={"tag": "legacy-payment"})


# ---------------------------------------------------------------------------
# Run both scenarios
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    print("=" * 60)
    print("Scenario A: explicit tags, exported because the flow failed")
    print("=" * 60)
    try:
        with exporting("payment", only_on_error=True):
            pay(user_id=101, amount=5_000)
    except ValueError:
        pass

    print()
    print("=" * 60)
    print("Scenario B: logging calls only")
    print("=" * 60)
    pay_plain(user_id=202, amount=5_000)
