from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    user = "user"
    admin = "admin"


class RatingCategory(str, Enum):
    physical = "physical"
    sensory = "sensory"
    cognitive = "cognitive"
