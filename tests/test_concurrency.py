import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from paycore.core.ledger import Ledger
from paycore.services.catalog import CREDIT_CARD, GIFT_CARD, default_registry
from paycore.services.payment_processor import PaymentProcessor


class TestConcurrentPayments(unittest.TestCase):

    def setUp(self):
        self.processor = PaymentProcessor(default_registry(), Ledger())

    def _run_concurrently(self, fn, count, workers=16):
        start = threading.Event()

        def call(i):
            start.wait(timeout=5)
            return fn(i)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(call, i) for i in range(count)]
            start.set()
            return [f.result() for f in futures]

    def test_concurrent_debits_never_overdraw(self):
        balance, amount, calls = Decimal("1000"), Decimal("70"), 40
        gift = self.processor.add_method(GIFT_CARD, balance=balance).unwrap()

        results = self._run_concurrently(lambda _: self.processor.process(gift.method_id, amount), calls)

        successes = [r for r in results if r.ok]
        failures = [r for r in results if not r.ok]
        self.assertEqual(len(successes), int(balance // amount))
        self.assertEqual(len(failures), calls - int(balance // amount))
        self.assertTrue(all(r.error.code == "insufficient_balance" for r in failures))

        final = self.processor.balance(gift.method_id).value
        self.assertEqual(final, balance - amount * len(successes))
        self.assertGreaterEqual(final, 0)

    def test_concurrent_refunds_credit_once(self):
        gift = self.processor.add_method(GIFT_CARD, balance=500).unwrap()
        tx = self.processor.process(gift.method_id, 200).unwrap()

        results = self._run_concurrently(lambda _: self.processor.refund(tx.transaction_id, 200), 20)

        self.assertEqual(sum(1 for r in results if r.ok), 1)
        self.assertTrue(all(r.error.code == "duplicate_refund" for r in results if not r.ok))
        self.assertEqual(self.processor.balance(gift.method_id).value, Decimal("500.00"))

    def test_independent_methods_do_not_interfere(self):
        cards = [self.processor.add_method(GIFT_CARD, balance=100).unwrap() for _ in range(8)]
        credit = self.processor.add_method(CREDIT_CARD).unwrap()

        def pay(i):
            if i % 3 == 0:
                return self.processor.process(credit.method_id, 10)
            return self.processor.process(cards[i % len(cards)].method_id, 10)

        results = self._run_concurrently(pay, 120)

        self.assertTrue(all(r.ok for r in results))
        ids = {r.value.transaction_id for r in results}
        self.assertEqual(len(ids), 120)
        total_left = sum(self.processor.balance(c.method_id).value for c in cards)
        gift_payments = sum(1 for i in range(120) if i % 3 != 0)
        self.assertEqual(total_left, Decimal("800") - Decimal("10") * gift_payments)


if __name__ == '__main__':
    unittest.main()
