from accessmap.models.users import AuthSession, UserAuth, UserProfile
from accessmap.models.places import PlaceAggregate
from accessmap.models.reviews import AccessibilityReview

__all__ = ["AuthSession", "UserAuth", "UserProfile", "PlaceAggregate", "AccessibilityReview"]
