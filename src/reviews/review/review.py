"""Review aggregate and the review service.

Reviews are write-once: a customer rates a product 1 to 5 with an
optional comment. The service owns the ``reviews`` collection.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Identifier, Integer, String, Text

from reviews.domain import reviews
from shared.records import load
from shared.store import REVIEWS, Store

logger = structlog.get_logger(__name__)


@reviews.aggregate
class Review:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    user_name = String(required=True, max_length=150)
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text()
    date = DateTime(default=lambda: datetime.now(UTC))


class ReviewService:
    def __init__(self, store: Store):
        self.store = store

    async def get_reviews(self) -> list[Review]:
        return [load(Review, record) for record in await self.store.get_collection(REVIEWS)]

    async def get_product_reviews(self, product_id) -> list[Review]:
        """Reviews for ``product_id``, newest first."""
        matching = [review for review in await self.get_reviews() if str(review.product_id) == str(product_id)]
        return sorted(matching, key=lambda review: review.date, reverse=True)

    async def add_review(self, data: dict) -> Review:
        review = load(Review, data)
        async with self.store.lock(REVIEWS):
            await self.store.upsert(REVIEWS, review.to_dict())

        logger.info("Review added", product_id=str(review.product_id), rating=review.rating)
        return review

    async def average_rating(self, product_id) -> float | None:
        """Mean rating to one decimal, or None when the product has no reviews."""
        ratings = [review.rating for review in await self.get_product_reviews(product_id)]
        if not ratings:
            return None
        return round(sum(ratings) / len(ratings), 1)
