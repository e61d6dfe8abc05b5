"""Ordering bounded context: order placement and stock reservation.

Handles the Order aggregate, the assembler that prices requested line items,
and the placement saga that reserves inventory and persists orders as a
single all-or-nothing unit.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
