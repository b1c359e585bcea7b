"""Payment confirmation exports"""

from .exceptions import MalformedPaymentEvent, PaymentError, PaymentProviderError, SignatureMismatch
from .models import CheckoutSession, PaymentReceipt, ReceiptStatus, WebhookOutcome, WebhookResult
from .signature import compute_signature, verify_signature

__all__ = [
    "CheckoutSession",
    "MalformedPaymentEvent",
    "PaymentError",
    "PaymentProviderError",
    "PaymentReceipt",
    "ReceiptStatus",
    "SignatureMismatch",
    "WebhookOutcome",
    "WebhookResult",
    "compute_signature",
    "verify_signature",
]
