"""Product aggregate root: the catalogue record behind every order line.

Only the parts of a product the ordering core depends on live here: the SKU
and title shown on order lines, the current selling price, and the lifecycle
status that decides whether the product can be sold.

Status lifecycle:
    DRAFT → ACTIVE → DISCONTINUED
"""

import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, String

from catalogue.domain import catalogue
from catalogue.product.events import (
    ProductActivated,
    ProductCreated,
    ProductDiscontinued,
    ProductPriceChanged,
)

# Prices are quoted in whole cents
_CENTS = 2


def is_whole_cents(price) -> bool:
    return round(price, _CENTS) == price


class ProductStatus(Enum):
    """Enumeration of product lifecycle statuses."""

    DRAFT = "Draft"
    ACTIVE = "Active"
    DISCONTINUED = "Discontinued"


@catalogue.aggregate
class Product:
    """Product aggregate root."""

    sku: String(required=True, max_length=50, min_length=3)
    title: String(required=True, max_length=255)
    price: Float(required=True, min_value=0.01)
    currency: String(max_length=3, default="USD")
    status: String(choices=ProductStatus, default=ProductStatus.DRAFT.value)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def sku_must_be_valid_format(self):
        code = self.sku
        if not code:
            return

        if not re.match(r"^[A-Za-z0-9-]+$", code):
            raise ValidationError({"sku": ["SKU must contain only alphanumeric characters and hyphens"]})

        if code.startswith("-") or code.endswith("-") or "--" in code:
            raise ValidationError({"sku": ["SKU hyphens must separate alphanumeric segments"]})

    @invariant.post
    def price_must_be_in_whole_cents(self):
        if self.price is not None and not is_whole_cents(self.price):
            raise ValidationError({"price": ["Price must be a whole number of cents"]})

    @classmethod
    def create(cls, sku, title, price, currency="USD"):
        now = datetime.now(UTC)
        product = cls(
            sku=sku,
            title=title,
            price=price,
            currency=currency,
            status=ProductStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                sku=sku,
                title=title,
                price=price,
                currency=currency,
                status=ProductStatus.DRAFT.value,
                created_at=now,
            )
        )
        return product

    @property
    def is_sellable(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def activate(self):
        if self.status != ProductStatus.DRAFT.value:
            raise ValidationError({"status": ["Only draft products can be activated"]})

        self.status = ProductStatus.ACTIVE.value
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductActivated(
                product_id=self.id,
                sku=self.sku,
                activated_at=now,
            )
        )

    def discontinue(self):
        if self.status != ProductStatus.ACTIVE.value:
            raise ValidationError({"status": ["Only active products can be discontinued"]})

        self.status = ProductStatus.DISCONTINUED.value
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductDiscontinued(
                product_id=self.id,
                sku=self.sku,
                discontinued_at=now,
            )
        )

    def change_price(self, new_price):
        if new_price is None or new_price < 0.01:
            raise ValidationError({"price": ["Price must be at least 0.01"]})
        if not is_whole_cents(new_price):
            raise ValidationError({"price": ["Price must be a whole number of cents"]})

        previous_price = self.price
        self.price = new_price
        now = datetime.now(UTC)
        self.updated_at = now

        self.raise_(
            ProductPriceChanged(
                product_id=self.id,
                previous_price=previous_price,
                new_price=new_price,
                currency=self.currency,
                changed_at=now,
            )
        )
