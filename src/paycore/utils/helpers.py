import logging
import uuid
from datetime import datetime, timezone
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)

from paycore.core.errors import InvalidAmountError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
SATOSHI = Decimal("0.00000001")

# integer digits an amount may have; keeps every balance, fee and BTC
# figure exact under MONEY_CONTEXT
MAX_INTEGER_DIGITS = 40
MONEY_CONTEXT = Context(
    prec=64,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


def generate_unique_id():
    return uuid.uuid4().hex


def utc_now():
    return datetime.now(timezone.utc)


def money_context():
    """Thread-local decimal context for arithmetic on money values."""
    return localcontext(MONEY_CONTEXT)


def to_money(amount):
    """
    Coerce ``amount`` to a two-place Decimal (ROUND_HALF_UP).

    Floats go through ``str`` so 0.1 stays 0.10. Anything that is not a
    finite number, or has more than MAX_INTEGER_DIGITS integer digits,
    raises InvalidAmountError. The sign is not checked here.
    """
    if isinstance(amount, bool):
        raise InvalidAmountError(amount)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(amount) from None
    if not value.is_finite():
        raise InvalidAmountError(amount)
    if value and value.adjusted() >= MAX_INTEGER_DIGITS:
        raise InvalidAmountError(amount, f"Amount {amount!r} is too large.")
    try:
        with money_context():
            return value.quantize(CENT)
    except InvalidOperation:
        raise InvalidAmountError(amount) from None


def percent_of(amount, percent):
    with money_context():
        return (amount * percent / Decimal("100")).quantize(CENT)


def log_transaction(transaction):
    logger.info(
        "Transaction %s: %s %s on %s (fees %s)",
        transaction.transaction_id,
        transaction.status.value,
        transaction.amount,
        transaction.method_id,
        transaction.fees_charged,
    )
