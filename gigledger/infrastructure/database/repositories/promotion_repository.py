"""SQLAlchemy implementation for promotable entities (jobs and profiles)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update

from gigledger.db.models import Job, Profile
from gigledger.modules.wallets.models import EntityKind, PromotableEntity, PromotionTag

from .base import SqlRepository

_MODELS = {
    EntityKind.JOB: Job,
    EntityKind.PROFILE: Profile,
}


class SqlPromotionRepository(SqlRepository):
    async def get_entity(self, kind: EntityKind, entity_id: str) -> PromotableEntity | None:
        model = _MODELS[kind]
        stmt = select(model).where(model.id == entity_id).execution_options(populate_existing=True)
        result = await self.execute(stmt)
        row = result.scalars().first()
        if row is None:
            return None
        owner_id = row.employer_id if kind is EntityKind.JOB else row.id
        return PromotableEntity(
            id=row.id,
            kind=kind,
            owner_id=owner_id,
            promotion_tag=PromotionTag(row.promotion_tag),
            promotion_expires_at=row.promotion_expires_at,
        )

    async def write_promotion(
        self,
        kind: EntityKind,
        entity_id: str,
        *,
        tag: PromotionTag,
        expires_at: datetime,
        expected_expiry: datetime | None,
    ) -> bool:
        model = _MODELS[kind]
        stmt = update(model).where(model.id == entity_id)
        if expected_expiry is None:
            stmt = stmt.where(model.promotion_expires_at.is_(None))
        else:
            stmt = stmt.where(model.promotion_expires_at == expected_expiry)
        stmt = stmt.values(promotion_tag=tag.value, promotion_expires_at=expires_at).execution_options(
            synchronize_session=False
        )
        result = await self.execute(stmt)
        return result.rowcount == 1
