import unittest
from decimal import Decimal

from paycore.core.errors import (
    DuplicateMethodError,
    InsufficientBalanceError,
    InvalidAmountError,
    UnknownMethodError,
)
from paycore.core.ledger import EntryType, Ledger, LedgerInstruction


class TestLedger(unittest.TestCase):

    def setUp(self):
        self.ledger = Ledger()
        self.ledger.open_account("gc-1", Decimal("1000"))

    def test_open_account_quantizes_balance(self):
        opening = self.ledger.open_account("gc-2", "12.345")
        self.assertEqual(opening, Decimal("12.35"))
        self.assertEqual(self.ledger.balance("gc-2"), Decimal("12.35"))

    def test_open_account_rejects_negative_balance(self):
        with self.assertRaises(InvalidAmountError):
            self.ledger.open_account("gc-2", -1)
        self.assertFalse(self.ledger.has_account("gc-2"))

    def test_open_account_twice(self):
        with self.assertRaises(DuplicateMethodError):
            self.ledger.open_account("gc-1", 10)

    def test_debit_and_credit(self):
        self.assertEqual(self.ledger.debit("gc-1", 400), Decimal("600.00"))
        self.assertEqual(self.ledger.credit("gc-1", Decimal("150.50")), Decimal("750.50"))
        self.assertEqual(self.ledger.balance("gc-1"), Decimal("750.50"))

    def test_debit_whole_balance(self):
        self.assertEqual(self.ledger.debit("gc-1", 1000), Decimal("0.00"))

    def test_overdraft_leaves_balance_untouched(self):
        with self.assertRaises(InsufficientBalanceError) as ctx:
            self.ledger.debit("gc-1", "1000.01")
        self.assertEqual(ctx.exception.details["balance"], Decimal("1000.00"))
        self.assertEqual(self.ledger.balance("gc-1"), Decimal("1000.00"))

    def test_non_positive_amounts(self):
        for amount in (0, -5, "abc"):
            with self.assertRaises(InvalidAmountError):
                self.ledger.debit("gc-1", amount)
            with self.assertRaises(InvalidAmountError):
                self.ledger.credit("gc-1", amount)

    def test_unknown_account(self):
        with self.assertRaises(UnknownMethodError):
            self.ledger.balance("missing")
        with self.assertRaises(UnknownMethodError):
            self.ledger.credit("missing", 1)

    def test_apply_instruction(self):
        self.ledger.apply(LedgerInstruction.debit("gc-1", Decimal("250")))
        self.assertEqual(self.ledger.balance("gc-1"), Decimal("750.00"))
        credit = LedgerInstruction.credit("gc-1", Decimal("50"))
        self.assertIs(credit.entry_type, EntryType.CREDIT)
        self.ledger.apply(credit)
        self.assertEqual(self.ledger.balance("gc-1"), Decimal("800.00"))

    def test_snapshot(self):
        self.ledger.open_account("gc-2", 5)
        self.assertEqual(
            dict(self.ledger.snapshot()),
            {"gc-1": Decimal("1000.00"), "gc-2": Decimal("5.00")},
        )


if __name__ == '__main__':
    unittest.main()
