from decimal import Decimal


class Config:
    DEBUG = False  # Set to True for local runs; enables basic logging
    DEFAULT_CURRENCY = "INR"

    # Fee schedules (percent of the payment amount)
    CARD_FEE_PERCENT = Decimal("2.0")
    UPI_FEE_PERCENT = Decimal("1.1")
    UPI_FEE_FREE_LIMIT = Decimal("2000")  # no fee at or below this amount
    BITCOIN_FEE_PERCENT = Decimal("0.5")

    # Per-kind ceilings; None means unbounded
    CARD_MAX_AMOUNT = None
    CASH_MAX_AMOUNT = None
    UPI_MAX_AMOUNT = Decimal("100000")
    GIFT_CARD_MAX_AMOUNT = None
    BITCOIN_MAX_AMOUNT = None

    # BTC per unit of DEFAULT_CURRENCY, used when no rate provider is supplied
    BTC_RATE = Decimal("0.00000014")

    FX_PRIMARY_BASE = "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1"
    FX_FALLBACK_BASE = "https://latest.currency-api.pages.dev/v1"
    FX_TIMEOUT_SECONDS = 5

    RECORD_FAILED_ATTEMPTS = False
