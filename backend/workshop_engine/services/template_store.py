"""SQL Template Store — workshop template persistence on an AsyncSession.

Invariants:
    - Returns frozen core WorkshopTemplate records, never ORM objects
    - update() only touches the columns the admin surface may change

Design Decisions:
    - Commits per write: template edits are single-row and never part of a
      booking transaction
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_engine.core.domain_types import (
    RecurrencePattern, RecurrenceType, TargetAudience, TemplateId, WorkshopTemplate,
)
from workshop_engine.models.workshop_template import WorkshopTemplateModel

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "title", "description", "capacity_per_slot", "is_active", "target_audience",
})


class SqlTemplateStore:
    """TemplateStore backed by the workshop_templates table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, template_id: TemplateId) -> WorkshopTemplate | None:
        row = await self._get_row(template_id)
        return row.to_domain() if row else None

    async def get_by_slug(self, slug: str) -> WorkshopTemplate | None:
        result = await self.db.execute(
            select(WorkshopTemplateModel)
            .where(WorkshopTemplateModel.shareable_slug == slug),
        )
        row = result.scalar_one_or_none()
        return row.to_domain() if row else None

    async def list_active(self) -> list[WorkshopTemplate]:
        result = await self.db.execute(
            select(WorkshopTemplateModel)
            .where(WorkshopTemplateModel.is_active.is_(True))
            .order_by(WorkshopTemplateModel.created_at),
        )
        return [row.to_domain() for row in result.scalars().all()]

    async def list_all(self) -> list[WorkshopTemplate]:
        result = await self.db.execute(
            select(WorkshopTemplateModel).order_by(WorkshopTemplateModel.created_at),
        )
        return [row.to_domain() for row in result.scalars().all()]

    async def create(
        self,
        *,
        title: str,
        description: str,
        recurrence_type: RecurrenceType,
        recurrence_pattern: RecurrencePattern,
        duration: int,
        capacity_per_slot: int,
        target_audience: TargetAudience,
        is_active: bool,
        shareable_slug: str,
    ) -> WorkshopTemplate:
        row = WorkshopTemplateModel(
            title=title,
            description=description,
            recurrence_type=recurrence_type.value,
            recurrence_date=recurrence_pattern.date,
            recurrence_time=recurrence_pattern.time,
            recurrence_days=sorted(recurrence_pattern.days),
            duration=duration,
            capacity_per_slot=capacity_per_slot,
            target_audience=target_audience.value,
            is_active=is_active,
            shareable_slug=shareable_slug,
        )
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
        logger.info(
            f"Workshop template created: {title}",
            extra={"template_id": row.id},
        )
        return row.to_domain()

    async def update(
        self, template_id: TemplateId, **fields: object,
    ) -> WorkshopTemplate | None:
        row = await self._get_row(template_id)
        if row is None:
            return None
        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS:
                raise ValueError(f"field '{name}' is not updatable")
            if isinstance(value, TargetAudience):
                value = value.value
            setattr(row, name, value)
        await self.db.commit()
        await self.db.refresh(row)
        return row.to_domain()

    async def _get_row(self, template_id: TemplateId) -> WorkshopTemplateModel | None:
        result = await self.db.execute(
            select(WorkshopTemplateModel)
            .where(WorkshopTemplateModel.id == template_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()
