"""Engagement bounded context: support chat between customers and agents."""

import structlog
from protean.domain import Domain

engagement = Domain(name="engagement")

logger = structlog.get_logger(__name__)
