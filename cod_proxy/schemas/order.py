"""Pydantic schemas for COD order submissions and responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OrderRequest(BaseModel):
    """A well-formed order submission.

    Only produced by the request validator; downstream code never sees the raw
    body.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., description="Customer name, sent as first name.")
    phone: str = Field(..., description="Customer phone, used for customer and addresses.")
    address: str = Field(..., description="Delivery address line.")
    city: str | None = Field(
        default=None,
        description="Delivery city (required by the GraphQL order API).",
    )
    variant_id: int = Field(..., alias="variantId", gt=0, description="Numeric product variant id.")
    quantity: int = Field(..., gt=0, description="Units to order.")


@dataclass(frozen=True)
class ShopContext:
    """Shop the order is created in, taken from deployment configuration."""

    domain: str
    access_token: str
    api_version: str

    def admin_url(self, resource: str) -> str:
        return f"https://{self.domain}/admin/api/{self.api_version}/{resource}"


@dataclass(frozen=True)
class ValidatedSubmission:
    order: OrderRequest
    shop: ShopContext


class OrderResponse(BaseModel):
    """Envelope returned to the storefront for every outcome."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    error: str | None = None
    message: str
    details: Any = None
    order_id: str | None = Field(default=None, alias="orderId")
    financial_status: str | None = Field(default=None, alias="financialStatus")
    order: dict[str, Any] | None = None

    def to_content(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
