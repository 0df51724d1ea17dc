"""
services/segment_service.py
---------------------------
Business logic for segment create / update / list / soft-delete.

Every query goes through the caller's TenantScope, so a segment of another
customer is reported exactly like a missing one (404).

Name uniqueness is checked in-process (case-insensitive, non-deleted
segments of the same customer); the partial unique index on `lists` catches
the remaining race and is reported the same way (409).
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forge.core.errors import ConflictError, NotFoundError
from forge.core.logging import get_logger
from forge.db.base import utcnow
from forge.db.scoping import TenantScope
from forge.models.segment import ListCompany, ListStatus, ListSubtype, ListType, Segment
from forge.schemas.segment import SegmentCreate, SegmentUpdate

logger = get_logger(__name__)

DUPLICATE_NAME_MESSAGE = (
    "A segment with this title already exists. Please choose a different title."
)


class SegmentService:

    @staticmethod
    def _active(scope: TenantScope):
        return scope.select(Segment).where(
            Segment.list_type == ListType.segment.value,
            Segment.deleted_at.is_(None),
        )

    @staticmethod
    async def _ensure_name_available(
        db: AsyncSession,
        scope: TenantScope,
        name: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        stmt = SegmentService._active(scope).where(func.lower(Segment.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Segment.list_id != exclude_id)
        existing = await db.scalar(stmt.limit(1))
        if existing is not None:
            raise ConflictError(DUPLICATE_NAME_MESSAGE)

    @staticmethod
    async def get_segment(
        db: AsyncSession, scope: TenantScope, segment_id: str
    ) -> Segment:
        segment = await db.scalar(
            SegmentService._active(scope).where(Segment.list_id == segment_id)
        )
        if segment is None:
            raise NotFoundError("Segment not found")
        return segment

    @staticmethod
    async def create_segment(
        db: AsyncSession, scope: TenantScope, data: SegmentCreate
    ) -> Segment:
        await SegmentService._ensure_name_available(db, scope, data.name)

        segment = Segment(
            customer_id=scope.customer_id,
            user_id=scope.user_id,
            list_type=ListType.segment.value,
            name=data.name,
            description=None,
            filters=data.filters.to_json(),
            status=ListStatus.new.value,
            subtype=ListSubtype.company.value,
            is_static=False,
        )
        db.add(segment)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            raise ConflictError(DUPLICATE_NAME_MESSAGE) from exc
        await db.refresh(segment)

        logger.info(
            "Segment created",
            list_id=segment.list_id,
            customer_id=scope.customer_id,
            name=segment.name,
        )
        return segment

    @staticmethod
    async def update_segment(
        db: AsyncSession, scope: TenantScope, data: SegmentUpdate
    ) -> tuple[Segment, bool]:
        """
        Rename / re-filter a segment.

        Returns:
            (segment, filters_changed). When the filters changed, the
            materialised members are deleted and status is back to 'new'.
        """
        segment = await SegmentService.get_segment(db, scope, data.segment_id)
        await SegmentService._ensure_name_available(
            db, scope, data.name, exclude_id=segment.list_id
        )

        new_filters = data.filters.to_json()
        filters_changed = (segment.filters or {}) != new_filters

        if filters_changed:
            await db.execute(
                scope.delete(ListCompany)
                .where(ListCompany.list_id == segment.list_id)
                .execution_options(synchronize_session=False)
            )
            segment.status = ListStatus.new.value

        segment.name = data.name
        segment.filters = new_filters
        segment.updated_at = utcnow()
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            raise ConflictError(DUPLICATE_NAME_MESSAGE) from exc
        await db.refresh(segment)

        logger.info(
            "Segment updated",
            list_id=segment.list_id,
            customer_id=scope.customer_id,
            filters_changed=filters_changed,
        )
        return segment, filters_changed

    @staticmethod
    async def list_segments(
        db: AsyncSession, scope: TenantScope
    ) -> list[tuple[Segment, int]]:
        """Non-deleted segments of the tenant, newest first, with member counts."""
        counts = (
            select(ListCompany.list_id, func.count().label("company_count"))
            .group_by(ListCompany.list_id)
            .subquery()
        )
        stmt = (
            scope.select(Segment, Segment, func.coalesce(counts.c.company_count, 0))
            .outerjoin(counts, counts.c.list_id == Segment.list_id)
            .where(
                Segment.list_type == ListType.segment.value,
                Segment.deleted_at.is_(None),
            )
            .order_by(Segment.created_at.desc())
        )
        result = await db.execute(stmt)
        return [(segment, count) for segment, count in result.all()]

    @staticmethod
    async def delete_segment(
        db: AsyncSession, scope: TenantScope, segment_id: str
    ) -> None:
        segment = await SegmentService.get_segment(db, scope, segment_id)
        segment.deleted_at = utcnow()
        await db.flush()
        logger.info("Segment deleted", list_id=segment_id, customer_id=scope.customer_id)
