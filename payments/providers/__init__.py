from payments.providers.base import PaymentProvider

__all__ = ["PaymentProvider"]
