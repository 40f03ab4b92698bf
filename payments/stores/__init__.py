from payments.stores.interfaces import PaymentLedger

__all__ = ["PaymentLedger"]
