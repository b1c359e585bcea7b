"""Payment domain specific exceptions."""


class PaymentError(Exception):
    """Base class for payment related errors."""


class SignatureMismatch(PaymentError):
    """Raised when a webhook body does not carry a valid signature."""


class MalformedPaymentEvent(PaymentError):
    """Raised when a signed webhook body cannot be interpreted."""


class PaymentProviderError(PaymentError):
    """Raised when the payment provider rejects or fails a request."""
