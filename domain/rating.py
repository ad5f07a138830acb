"""Rating aggregation shared by hotel, vehicle and guide reviews"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List

from domain.value_objects import RatingDistribution

STARS = (1, 2, 3, 4, 5)


def _rating_of(review: Any) -> Any:
    if isinstance(review, dict):
        return review.get("rating")
    return getattr(review, "rating", None)


def _is_valid_rating(rating: Any) -> bool:
    # bool is an int subclass; True must not count as a one-star review
    return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 5


def aggregate(reviews: Iterable[Any]) -> RatingDistribution:
    """Reduce reviews to a per-star count and a one-decimal average.

    Accepts review entities or plain mappings with a ``rating`` key. Ratings
    outside 1..5 or of the wrong type are skipped. The result does not depend
    on the order of ``reviews``.
    """
    ratings: List[int] = [r for r in map(_rating_of, reviews) if _is_valid_rating(r)]

    distribution = {star: 0 for star in STARS}
    for rating in ratings:
        distribution[rating] += 1

    if not ratings:
        average = 0.0
    else:
        average = float(
            (Decimal(sum(ratings)) / Decimal(len(ratings))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        )

    return RatingDistribution(
        distribution=distribution,
        average_rating=average,
        total_reviews=len(ratings),
    )
