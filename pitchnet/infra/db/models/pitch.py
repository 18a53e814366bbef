"""Pitch and pitch review database models."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Float

from pitchnet.infra.db.base import Base
from pitchnet.domain.pitch.models import Pitch, PitchReview, PitchStatus


class PitchModel(Base):
    """Pitch database model."""

    __tablename__ = "pitches"

    id = Column(String, primary_key=True)
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, default=PitchStatus.DRAFT.value)
    pitch_deck_url = Column(String, nullable=True)
    deck_share_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_entity(self) -> Pitch:
        return Pitch(
            id=self.id,
            owner_id=self.owner_id,
            title=self.title,
            status=PitchStatus(self.status),
            pitch_deck_url=self.pitch_deck_url,
            deck_share_count=self.deck_share_count or 0,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class PitchReviewModel(Base):
    """Review of a pitch by a reviewer."""

    __tablename__ = "pitch_reviews"

    id = Column(String, primary_key=True)
    pitch_id = Column(String, ForeignKey("pitches.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_entity(self) -> PitchReview:
        return PitchReview(
            id=self.id,
            pitch_id=self.pitch_id,
            reviewer_id=self.reviewer_id,
            rating=self.rating,
            created_at=self.created_at,
        )
