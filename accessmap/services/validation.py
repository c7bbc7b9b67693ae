from __future__ import annotations

from accessmap.core.errors import ValidationError
from accessmap.models.enums import RatingCategory

MIN_REVIEW_TEXT_LENGTH = 10
MIN_RATING = 1
MAX_RATING = 5


def validate_review(*, physical: int, sensory: int, cognitive: int, text: str | None) -> str:
    """Check a review before anything is written. Returns the stripped text."""
    ratings = {
        RatingCategory.physical: physical,
        RatingCategory.sensory: sensory,
        RatingCategory.cognitive: cognitive,
    }
    missing = [c.value for c, r in ratings.items() if not r]
    if missing:
        raise ValidationError("ratings", f"Please rate all categories (missing: {', '.join(missing)})")

    out_of_range = [c.value for c, r in ratings.items() if not MIN_RATING <= r <= MAX_RATING]
    if out_of_range:
        raise ValidationError(
            "ratings", f"Ratings must be between {MIN_RATING} and {MAX_RATING} ({', '.join(out_of_range)})"
        )

    cleaned = (text or "").strip()
    if len(cleaned) < MIN_REVIEW_TEXT_LENGTH:
        raise ValidationError(
            "text", f"Please write a detailed review (at least {MIN_REVIEW_TEXT_LENGTH} characters)"
        )
    return cleaned
