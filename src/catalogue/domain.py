"""Catalogue bounded context: products, their stock and generated copy.

Stock only moves through reservations taken at checkout and the restores
that compensate them.
"""

from protean.domain import Domain

from shared.logging import get_logger

logger = get_logger(__name__)

catalogue = Domain(name="catalogue")
