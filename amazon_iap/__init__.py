"""
Amazon Appstore in-app purchase receipt validation.

The validator logs through structlog. Host applications call
setup_logging() once at startup, before building validators, to get JSON
(or console) output with service context; without it structlog's defaults
apply.

Usage:
    from amazon_iap import AmazonReceiptValidator, setup_logging

    setup_logging()
    validator = AmazonReceiptValidator.new_default(secret)
    receipt = validator.verify(user_id, receipt_id)
"""

from amazon_iap.exceptions import (
    ApplicationRejection,
    DecodeError,
    ReceiptValidationError,
    TransportError,
)
from amazon_iap.models.amazon import (
    PRODUCTION_URL,
    SANDBOX_URL,
    AmazonReceiptVerification,
    AmazonValidatorConfig,
    ReceiptRejected,
    ReceiptVerified,
    VerificationFailed,
    VerificationOutcome,
)
from amazon_iap.observability import log_context, setup_logging
from amazon_iap.services.amazon_provider import AmazonReceiptValidator
from amazon_iap.services.receipt_verifier import ReceiptVerifier

__version__ = "0.1.0"

__all__ = [
    "AmazonReceiptValidator",
    "AmazonReceiptVerification",
    "AmazonValidatorConfig",
    "ApplicationRejection",
    "DecodeError",
    "PRODUCTION_URL",
    "ReceiptRejected",
    "ReceiptValidationError",
    "ReceiptVerified",
    "ReceiptVerifier",
    "SANDBOX_URL",
    "TransportError",
    "VerificationFailed",
    "VerificationOutcome",
    "log_context",
    "setup_logging",
]
