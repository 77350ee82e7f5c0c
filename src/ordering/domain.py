"""Ordering bounded context: orders, pricing and the checkout saga.

Orders are created only by the checkout saga, from a priced cart snapshot,
and change afterwards only through status transitions.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
