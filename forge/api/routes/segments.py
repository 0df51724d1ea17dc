"""
api/routes/segments.py
----------------------
Segment endpoints. All of them are scoped to the caller's customer.

POST   /segments-ai            — Propose a segment (name + filters) from free text.
POST   /segments-create        — Create a segment.
POST   /segments-update        — Rename / re-filter a segment.
GET    /segments               — List the customer's segments.
DELETE /segments/{segment_id}  — Soft-delete a segment.

Create and filter-changing updates schedule a notification and the
downstream processing trigger as background tasks; neither can fail the
request.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from forge.db.scoping import TenantScope
from forge.db.session import get_db
from forge.dependencies import get_tenant_scope
from forge.schemas.segment import (
    AiSegmentResponse,
    SegmentAiRequest,
    SegmentCreate,
    SegmentListItem,
    SegmentRead,
    SegmentUpdate,
)
from forge.services.notification_service import NotificationService
from forge.services.processing_trigger import trigger_segment_processing
from forge.services.segment_ai_service import SegmentAiService
from forge.services.segment_service import SegmentService

router = APIRouter(tags=["Segments"])


@router.post(
    "/segments-ai",
    response_model=AiSegmentResponse,
    response_model_exclude_none=True,
    summary="Generate a segment proposal from a description",
)
async def generate_segment(
    body: SegmentAiRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: Annotated[TenantScope, Depends(get_tenant_scope)],
) -> AiSegmentResponse:
    """The proposal is not saved; submit it to /segments-create to keep it."""
    return await SegmentAiService.generate(
        db, description=body.description, customer_id=scope.customer_id
    )


@router.post(
    "/segments-create",
    response_model=SegmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a segment",
)
async def create_segment(
    body: SegmentCreate,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: Annotated[TenantScope, Depends(get_tenant_scope)],
) -> SegmentRead:
    segment = await SegmentService.create_segment(db, scope, body)
    response = SegmentRead.model_validate(segment)

    background_tasks.add_task(
        NotificationService.segment_created,
        scope.customer_id,
        scope.user_id,
        segment.list_id,
        segment.name,
    )
    background_tasks.add_task(
        trigger_segment_processing, segment.list_id, scope.customer_id
    )
    return response


@router.post(
    "/segments-update",
    response_model=SegmentRead,
    summary="Update a segment's name and filters",
)
async def update_segment(
    body: SegmentUpdate,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: Annotated[TenantScope, Depends(get_tenant_scope)],
) -> SegmentRead:
    """
    Changing the filters drops the segment's materialised companies and
    resets status to 'new' so the processing pipeline picks it up again.
    """
    segment, filters_changed = await SegmentService.update_segment(db, scope, body)
    response = SegmentRead.model_validate(segment)

    if filters_changed:
        background_tasks.add_task(
            NotificationService.segment_updated,
            scope.customer_id,
            scope.user_id,
            segment.list_id,
            segment.name,
        )
        background_tasks.add_task(
            trigger_segment_processing, segment.list_id, scope.customer_id
        )
    return response


@router.get(
    "/segments",
    response_model=list[SegmentListItem],
    summary="List the customer's segments",
)
async def list_segments(
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: Annotated[TenantScope, Depends(get_tenant_scope)],
) -> list[SegmentListItem]:
    rows = await SegmentService.list_segments(db, scope)
    return [
        SegmentListItem.model_validate(segment).model_copy(
            update={"company_count": count}
        )
        for segment, count in rows
    ]


@router.delete(
    "/segments/{segment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Soft-delete a segment",
)
async def delete_segment(
    segment_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: Annotated[TenantScope, Depends(get_tenant_scope)],
) -> Response:
    await SegmentService.delete_segment(db, scope, segment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
