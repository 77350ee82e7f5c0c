import pytest

from reviews.review.review import ReviewService


@pytest.fixture(autouse=True)
def _ctx(domain_beds):
    with domain_beds["reviews"].domain_context():
        yield


@pytest.fixture
def review_service(store):
    return ReviewService(store)
