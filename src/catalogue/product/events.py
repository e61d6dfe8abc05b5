"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from catalogue.domain import catalogue


@catalogue.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue in Draft status."""

    __version__ = 1

    product_id: Identifier(required=True)
    sku: String(required=True)
    title: String(required=True)
    price: Float(required=True)
    currency: String(required=True)
    status: String(required=True)
    created_at: DateTime(required=True)


@catalogue.event(part_of="Product")
class ProductActivated:
    """A draft product was activated and made available for sale."""

    __version__ = 1

    product_id: Identifier(required=True)
    sku: String(required=True)
    activated_at: DateTime(required=True)


@catalogue.event(part_of="Product")
class ProductDiscontinued:
    """An active product was discontinued and removed from sale."""

    __version__ = 1

    product_id: Identifier(required=True)
    sku: String(required=True)
    discontinued_at: DateTime(required=True)


@catalogue.event(part_of="Product")
class ProductPriceChanged:
    """A product's selling price was updated.

    Orders already placed keep the price they were placed at.
    """

    __version__ = 1

    product_id: Identifier(required=True)
    previous_price: Float(required=True)
    new_price: Float(required=True)
    currency: String(required=True)
    changed_at: DateTime(required=True)
