"""
Receipt Verifier Protocol - Storefront-agnostic interface.

NO DICTIONARIES - All data uses strongly typed models.
"""

from typing import Protocol

from amazon_iap.models.amazon import AmazonReceiptVerification


class ReceiptVerifier(Protocol):
    """
    Receipt verifier protocol.

    AmazonReceiptValidator implements this interface; code that only needs to
    verify receipts should depend on it so a fake can be substituted in tests.
    """

    def verify(self, user_id: str, receipt_id: str) -> AmazonReceiptVerification:
        """
        Verify a receipt with the storefront.

        Args:
            user_id: Storefront user id
            receipt_id: Storefront receipt id

        Returns:
            Verified receipt details

        Raises:
            ReceiptValidationError: If the receipt could not be verified
        """
        ...
