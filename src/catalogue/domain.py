"""Catalogue bounded context: product records and their price / status.

The placement core treats the catalogue as a read-only collaborator: it only
asks for the current unit price and whether a product can be sold.
"""

import structlog
from protean.domain import Domain

catalogue = Domain(name="catalogue")

logger = structlog.get_logger(__name__)
