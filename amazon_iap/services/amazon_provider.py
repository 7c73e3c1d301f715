"""
Amazon Appstore Receipt Verification Provider.

NO DICTIONARIES - All data uses strongly typed models.

Uses the Amazon Receipt Verification Service (RVS) verifyReceiptId API.
https://developer.amazon.com/docs/in-app-purchasing/iap-rvs-for-android-apps.html
"""

import time

import httpx
from pydantic import ValidationError
from structlog import get_logger

from amazon_iap.config import Settings, get_settings
from amazon_iap.exceptions import DecodeError, TransportError
from amazon_iap.models.amazon import (
    AmazonReceiptVerification,
    AmazonValidatorConfig,
    ReceiptRejected,
    ReceiptVerified,
    VerificationFailed,
    VerificationOutcome,
)
from amazon_iap.models.api import AmazonErrorResponse, AmazonReceiptResponse

logger = get_logger(__name__)

VERIFY_PATH = "/version/1.0/verifyReceiptId/developer/{secret}/user/{user_id}/receiptId/{receipt_id}"


class AmazonReceiptValidator:
    """
    Amazon RVS client.

    Immutable after construction and safe to share between threads: every
    verify call is an independent GET bounded by the configured timeout.
    Nothing is retried; the caller owns retry and backoff.
    """

    def __init__(
        self,
        base_url: str,
        secret: str,
        timeout: float,
        http_client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the validator.

        Prefer new_default() or new_with_config(), which apply the endpoint
        and timeout defaults.

        Args:
            base_url: RVS base URL (sandbox or production)
            secret: Developer shared secret from the Amazon developer console
            timeout: Per-request timeout in seconds
            http_client: Optional shared client; one is opened per call otherwise
        """
        self.base_url = base_url
        self._secret = secret
        self.timeout = timeout
        self._http_client = http_client

    @classmethod
    def new_default(
        cls,
        secret: str,
        settings: Settings | None = None,
        http_client: httpx.Client | None = None,
    ) -> "AmazonReceiptValidator":
        """
        Create a validator from process settings.

        Sandbox unless IAP_ENVIRONMENT is exactly "production". Settings are
        read once here, never on verify.
        """
        settings = settings or get_settings()
        config = AmazonValidatorConfig(
            is_production=settings.is_production,
            secret=secret,
            timeout=settings.iap_timeout_seconds,
        )
        return cls._from_config(config, http_client)

    @classmethod
    def new_with_config(
        cls,
        config: AmazonValidatorConfig,
        http_client: httpx.Client | None = None,
    ) -> "AmazonReceiptValidator":
        """Create a validator from an explicit configuration record."""
        return cls._from_config(config, http_client)

    @classmethod
    def _from_config(
        cls,
        config: AmazonValidatorConfig,
        http_client: httpx.Client | None,
    ) -> "AmazonReceiptValidator":
        validator = cls(
            base_url=config.base_url,
            secret=config.secret,
            timeout=config.effective_timeout,
            http_client=http_client,
        )
        logger.info(
            "amazon_receipt_validator_initialized",
            production=config.is_production,
            timeout=validator.timeout,
        )
        return validator

    def __repr__(self) -> str:
        return f"AmazonReceiptValidator(base_url={self.base_url!r}, timeout={self.timeout!r})"

    def build_url(self, user_id: str, receipt_id: str) -> str:
        """
        Build the verifyReceiptId URL.

        Segments are substituted as-is, without percent-encoding. Callers must
        pass path-safe ids.
        """
        return self.base_url + VERIFY_PATH.format(
            secret=self._secret,
            user_id=user_id,
            receipt_id=receipt_id,
        )

    def verify(self, user_id: str, receipt_id: str) -> AmazonReceiptVerification:
        """
        Verify a receipt with RVS.

        Args:
            user_id: Amazon user id from the purchase response
            receipt_id: Receipt id from the purchase response

        Returns:
            Receipt details exactly as reported by RVS

        Raises:
            TransportError: If RVS could not be reached in time
            ApplicationRejection: If RVS answered with a non-2xx status
            DecodeError: If a 2xx body is not a receipt
        """
        return self._verify_once(user_id, receipt_id).unwrap()

    def check(self, user_id: str, receipt_id: str) -> VerificationOutcome:
        """Verify a receipt and return the outcome instead of raising."""
        try:
            return self._verify_once(user_id, receipt_id)
        except (TransportError, DecodeError) as exc:
            return VerificationFailed(exc)

    def _verify_once(self, user_id: str, receipt_id: str) -> ReceiptVerified | ReceiptRejected:
        logger.info(
            "amazon_receipt_verification_started",
            user_id=user_id,
            receipt_id=receipt_id,
        )

        try:
            status_code, content = self._get(self.build_url(user_id, receipt_id))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "amazon_receipt_transport_failed",
                receipt_id=receipt_id,
                error_type=type(exc).__name__,
            )
            raise TransportError(str(exc) or type(exc).__name__) from exc

        if not 200 <= status_code < 300:
            return self._interpret_rejection(status_code, content, receipt_id)

        return self._interpret_success(status_code, content, receipt_id)

    def _get(self, url: str) -> tuple[int, bytes]:
        """
        GET the url and read the whole body before one overall deadline.

        httpx restarts its read timeout for every chunk, so the deadline is
        checked after the headers and after each chunk. A call ends at most one
        read timeout after the deadline passes.
        """
        deadline = time.monotonic() + self.timeout

        if self._http_client is not None:
            return self._read_before(self._http_client, url, deadline)

        with httpx.Client(timeout=self.timeout) as client:
            return self._read_before(client, url, deadline)

    def _read_before(self, client: httpx.Client, url: str, deadline: float) -> tuple[int, bytes]:
        with client.stream("GET", url, timeout=self.timeout) as response:
            _check_deadline(deadline, response.request)
            body = bytearray()
            for chunk in response.iter_bytes():
                body.extend(chunk)
                _check_deadline(deadline, response.request)
            return response.status_code, bytes(body)

    def _interpret_rejection(
        self, status_code: int, content: bytes, receipt_id: str
    ) -> ReceiptRejected:
        try:
            body = AmazonErrorResponse.model_validate_json(content)
        except ValidationError:
            body = AmazonErrorResponse()

        logger.warning(
            "amazon_receipt_rejected",
            receipt_id=receipt_id,
            status_code=status_code,
            message=body.message,
        )

        return ReceiptRejected(
            status_code=status_code,
            message=body.message or "",
            status=body.status,
        )

    def _interpret_success(
        self, status_code: int, content: bytes, receipt_id: str
    ) -> ReceiptVerified:
        try:
            body = AmazonReceiptResponse.model_validate_json(content)
        except ValidationError as exc:
            logger.error(
                "amazon_receipt_decode_failed",
                receipt_id=receipt_id,
                status_code=status_code,
                errors=exc.error_count(),
            )
            raise DecodeError(str(exc)) from exc

        result = AmazonReceiptVerification.from_response(body)

        logger.info(
            "amazon_receipt_verified",
            receipt_id=result.receipt_id,
            product_id=result.product_id,
            product_type=result.product_type,
            cancelled=result.is_cancelled(),
            test_transaction=result.test_transaction,
        )

        return ReceiptVerified(result)


def _check_deadline(deadline: float, request: httpx.Request) -> None:
    if time.monotonic() > deadline:
        raise httpx.ReadTimeout("Overall request deadline exceeded", request=request)
