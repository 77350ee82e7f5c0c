"""Marketing bounded context: discount codes, analytics events and
customer-lifecycle automation (newsletter, abandoned carts, purchases)."""

import structlog
from protean.domain import Domain

marketing = Domain(name="marketing")

logger = structlog.get_logger(__name__)
