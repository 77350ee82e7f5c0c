"""Identity bounded context: registered users and their wallets."""

from protean.domain import Domain

from shared.logging import get_logger

logger = get_logger(__name__)

identity = Domain(name="identity")
