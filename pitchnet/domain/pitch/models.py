"""Pitch domain models (only what the request workflow reads and updates)."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class PitchStatus(str, Enum):
    """Pitch lifecycle status."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    IN_REVIEW = "in-review"
    REVIEWED = "reviewed"
    ARCHIVED = "archived"


@dataclass
class Pitch:
    """Pitch domain model."""
    id: str
    owner_id: str
    title: str
    status: PitchStatus
    pitch_deck_url: Optional[str]
    deck_share_count: int
    created_at: datetime
    updated_at: datetime

    def is_visible_to(self, user_id: str) -> bool:
        """Drafts are private to their owner."""
        return self.status != PitchStatus.DRAFT or self.owner_id == user_id


@dataclass
class PitchReview:
    """Pitch review domain model."""
    id: str
    pitch_id: str
    reviewer_id: str
    rating: Optional[float]
    created_at: datetime
