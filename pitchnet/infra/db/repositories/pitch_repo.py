"""Pitch repository."""
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from pitchnet.domain.pitch.models import Pitch, PitchReview
from pitchnet.domain.notifications.repositories import PitchRepository
from pitchnet.infra.db.models.pitch import PitchModel, PitchReviewModel


class PitchRepositoryImpl(PitchRepository):
    """Pitch repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, pitch_id: str) -> Optional[Pitch]:
        result = await self.session.execute(select(PitchModel).where(PitchModel.id == pitch_id))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_review(self, review_id: str) -> Optional[PitchReview]:
        result = await self.session.execute(
            select(PitchReviewModel).where(PitchReviewModel.id == review_id)
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def record_deck_share(self, pitch_id: str) -> None:
        """Increment the deck share counter in the current transaction."""
        await self.session.execute(
            update(PitchModel)
            .where(PitchModel.id == pitch_id)
            .values(
                deck_share_count=PitchModel.deck_share_count + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session="fetch")
        )
