import unittest
from decimal import Decimal

from paycore.core.errors import CapabilityMismatchError, DuplicateKindError, UnknownKindError
from paycore.core.registry import CapabilityRegistry
from paycore.models.payment_method import Capability, CapabilityDescriptor
from paycore.services.catalog import (
    BITCOIN,
    CASH,
    CREDIT_CARD,
    GIFT_CARD,
    UPI,
    CashPayment,
    CreditCardPayment,
    default_registry,
)
from paycore.services.payment_processor import PaymentProcessor


class TestCapabilityRegistry(unittest.TestCase):

    def setUp(self):
        self.registry = CapabilityRegistry()

    def test_register_and_lookup(self):
        descriptor = CapabilityDescriptor.of(Capability.FEE_BEARING, Capability.REFUNDABLE)
        behavior = CreditCardPayment()
        self.registry.register("card", descriptor, behavior)

        entry = self.registry.lookup("card")
        self.assertEqual(entry.kind, "card")
        self.assertIs(entry.behavior, behavior)
        self.assertTrue(entry.supports(Capability.REFUNDABLE))
        self.assertFalse(entry.supports(Capability.BALANCE_TRACKED))
        self.assertIn("card", self.registry)
        self.assertEqual(len(self.registry), 1)

    def test_duplicate_kind(self):
        self.registry.register("cash", CapabilityDescriptor(), CashPayment())
        with self.assertRaises(DuplicateKindError):
            self.registry.register("cash", CapabilityDescriptor(), CashPayment())

    def test_unknown_kind(self):
        with self.assertRaises(UnknownKindError) as ctx:
            self.registry.lookup("cheque")
        self.assertEqual(ctx.exception.code, "unknown_kind")

    def test_declared_capability_needs_operation(self):
        fee_descriptor = CapabilityDescriptor.of(Capability.FEE_BEARING)
        with self.assertRaises(CapabilityMismatchError):
            self.registry.register("cash-with-fees", fee_descriptor, CashPayment())

        refund_descriptor = CapabilityDescriptor.of(Capability.REFUNDABLE)
        with self.assertRaises(CapabilityMismatchError):
            self.registry.register("cash-refunds", refund_descriptor, CashPayment())
        self.assertEqual(len(self.registry), 0)

    def test_behavior_needs_base_operations(self):
        class ProcessOnly:
            def process_payment(self, method, amount):
                return None

        class ValidateOnly:
            def validate(self, amount, descriptor, kind=""):
                return amount

        for behavior, missing in ((ProcessOnly(), "validate"), (ValidateOnly(), "process_payment")):
            with self.assertRaises(CapabilityMismatchError) as ctx:
                self.registry.register("plain", CapabilityDescriptor(), behavior)
            self.assertEqual(ctx.exception.details["operation"], missing)
            self.assertIsNone(ctx.exception.details["capability"])
        self.assertNotIn("plain", self.registry)

    def test_processor_rejects_incomplete_behavior(self):
        class ProcessOnly:
            def process_payment(self, method, amount):
                return None

        processor = PaymentProcessor(self.registry)
        result = processor.register_method("plain", CapabilityDescriptor(), ProcessOnly())
        self.assertEqual(result.error.code, "capability_mismatch")
        self.assertEqual(processor.add_method("plain").error.code, "unknown_kind")

    def test_default_registry_kinds(self):
        registry = default_registry()
        self.assertEqual(registry.kinds(), sorted([BITCOIN, CASH, CREDIT_CARD, GIFT_CARD, UPI]))

        self.assertEqual(registry.lookup(CASH).descriptor.capabilities, frozenset())
        self.assertEqual(
            registry.lookup(GIFT_CARD).descriptor.capabilities,
            frozenset({Capability.REFUNDABLE, Capability.BALANCE_TRACKED}),
        )
        self.assertEqual(registry.lookup(UPI).descriptor.max_amount, Decimal("100000.00"))
        self.assertIsNone(registry.lookup(CREDIT_CARD).descriptor.max_amount)


if __name__ == '__main__':
    unittest.main()
