"""
Amazon Appstore domain models - Immutable dataclasses for receipt verification.

NO DICTIONARIES - All data uses strongly typed models.

Amazon's Receipt Verification Service (RVS) answers a single GET per receipt.
Every call ends in exactly one VerificationOutcome.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from amazon_iap.exceptions import ApplicationRejection, DecodeError, TransportError
from amazon_iap.models.api import AmazonReceiptResponse

SANDBOX_URL = "http://localhost:8080/RVSSandbox"  # Amazon App Tester RVS sandbox
PRODUCTION_URL = "https://appstore-sdk.amazon.com"
DEFAULT_TIMEOUT = 5.0  # seconds


@dataclass(frozen=True)
class AmazonValidatorConfig:
    """Explicit configuration for an Amazon receipt validator."""

    is_production: bool
    secret: str = field(repr=False)  # Developer shared secret, never logged
    timeout: float = 0.0  # seconds, 0 means DEFAULT_TIMEOUT

    @property
    def base_url(self) -> str:
        """Get the RVS base URL for the configured environment."""
        return PRODUCTION_URL if self.is_production else SANDBOX_URL

    @property
    def effective_timeout(self) -> float:
        """Get the request timeout, applying the default for 0."""
        return self.timeout or DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        """Validate configuration fields."""
        if not self.secret:
            raise ValueError("Amazon developer secret is required")
        if self.timeout < 0:
            raise ValueError("Timeout must be >= 0")


@dataclass(frozen=True)
class AmazonReceiptVerification:
    """Verified Amazon receipt as returned by RVS.

    Values are kept verbatim; callers decide what a cancel date means for
    their entitlement logic.
    """

    receipt_id: str
    product_type: str  # "CONSUMABLE", "ENTITLED" or "SUBSCRIPTION"
    product_id: str  # SKU
    purchase_date: int  # epoch millis
    cancel_date: int = 0  # epoch millis, 0 = not cancelled
    test_transaction: bool = False

    @classmethod
    def from_response(cls, response: AmazonReceiptResponse) -> "AmazonReceiptVerification":
        """Build the domain result from a validated RVS success body."""
        return cls(
            receipt_id=response.receipt_id,
            product_type=response.product_type,
            product_id=response.product_id,
            purchase_date=response.purchase_date,
            cancel_date=response.cancel_date,
            test_transaction=response.test_transaction,
        )

    @property
    def purchased_at(self) -> datetime:
        """Purchase date as an aware UTC datetime.

        Raises:
            ValueError: If purchase_date is outside the range datetime supports
        """
        return _millis_to_datetime(self.purchase_date)

    @property
    def cancelled_at(self) -> datetime | None:
        """Cancel date as an aware UTC datetime, None if not cancelled."""
        if not self.cancel_date:
            return None
        return _millis_to_datetime(self.cancel_date)

    def is_cancelled(self) -> bool:
        """Check if RVS reported a cancel date for this receipt."""
        return self.cancel_date != 0

    def is_test_transaction(self) -> bool:
        """Check if the receipt came from a test (sandbox/tester) purchase."""
        return self.test_transaction


# ============================================================================
# Verification outcome - one of three cases per call
# ============================================================================


@dataclass(frozen=True)
class ReceiptVerified:
    """RVS accepted the receipt."""

    result: AmazonReceiptVerification

    def unwrap(self) -> AmazonReceiptVerification:
        return self.result


@dataclass(frozen=True)
class ReceiptRejected:
    """RVS rejected the receipt or credentials (non-2xx)."""

    status_code: int
    message: str  # Empty when the error body was not decodable
    status: bool = False

    def unwrap(self) -> AmazonReceiptVerification:
        raise ApplicationRejection(self.message, self.status_code, self.status)


@dataclass(frozen=True)
class VerificationFailed:
    """The call failed before a usable answer arrived."""

    error: TransportError | DecodeError

    def unwrap(self) -> AmazonReceiptVerification:
        raise self.error.with_traceback(None)


VerificationOutcome = ReceiptVerified | ReceiptRejected | VerificationFailed


def _millis_to_datetime(millis: int) -> datetime:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"Epoch millis out of datetime range: {millis}") from exc
