"""
API Models - Pydantic models for Amazon RVS response bodies.

NO DICTIONARIES - Wire payloads are validated into typed models.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)


class AmazonReceiptResponse(BaseModel):
    """RVS verifyReceiptId success body (HTTP 2xx).

    Strict: a string date or a string bool is a wrong shape, not a value to coerce.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True)

    receipt_id: str = Field(..., alias="receiptId")
    product_type: str = Field(..., alias="productType")
    product_id: str = Field(..., alias="productId")
    purchase_date: int = Field(..., alias="purchaseDate")  # epoch millis
    cancel_date: int = Field(0, alias="cancelDate")  # epoch millis, 0 = not cancelled
    test_transaction: bool = Field(False, alias="testTransaction")

    @field_validator("cancel_date", mode="before")
    @classmethod
    def null_cancel_date(cls, v: object) -> object:
        """RVS sends null for purchases that were never cancelled."""
        return 0 if v is None else v


class AmazonErrorResponse(BaseModel):
    """RVS error body (HTTP non-2xx).

    Decoded field by field: a malformed field falls back to its default so
    the other one survives.
    """

    message: str | None = None
    status: bool = False

    @field_validator("message", "status", mode="wrap")
    @classmethod
    def lenient_field(
        cls, v: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(v)
        except ValidationError:
            return cls.model_fields[info.field_name].default
