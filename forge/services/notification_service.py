"""
services/notification_service.py
--------------------------------
Best-effort in-app notifications.

Notifications are scheduled as background tasks after the primary response
and written in their own session, so they are never part of the parent
write's transaction. Any failure is logged and swallowed.
"""

import re
from typing import Any, Optional

from forge.core.logging import get_logger
from forge.db.session import AsyncSessionLocal
from forge.models.notification import Notification

logger = get_logger(__name__)

SEGMENT_CHANNEL = "segment"
SEGMENT_GENERATED_BY = "system (segment service)"
LLM_CHANNEL = "llm"
LLM_GENERATED_BY = "llm-system"


def format_feature_slug(slug: str) -> str:
    """'content-generator' -> 'Content Generator'"""
    return " ".join(word.capitalize() for word in re.split(r"[-_]", slug) if word)


class NotificationService:

    @staticmethod
    async def create_notification(
        *,
        customer_id: str,
        user_id: Optional[str],
        title: str,
        message: str,
        channel: str,
        metadata: Optional[dict[str, Any]] = None,
        generated_by: Optional[str] = None,
    ) -> None:
        try:
            async with AsyncSessionLocal() as session:
                session.add(
                    Notification(
                        customer_id=customer_id,
                        user_id=user_id,
                        type=["in_app"],
                        title=title,
                        message=message,
                        channel=channel,
                        extra=metadata,
                        generated_by=generated_by,
                    )
                )
                await session.commit()
            logger.info("Notification created", channel=channel, title=title, user_id=user_id)
        except Exception as exc:
            logger.error(
                "Failed to create notification",
                channel=channel,
                title=title,
                error=str(exc),
            )

    @staticmethod
    async def segment_created(
        customer_id: str, user_id: Optional[str], list_id: str, name: str
    ) -> None:
        await NotificationService.create_notification(
            customer_id=customer_id,
            user_id=user_id,
            title="Segment Created",
            message=f'Segment "{name}" has been created and processing has started.',
            channel=SEGMENT_CHANNEL,
            metadata={"id": list_id, "name": name, "status": "new"},
            generated_by=SEGMENT_GENERATED_BY,
        )

    @staticmethod
    async def segment_updated(
        customer_id: str, user_id: Optional[str], list_id: str, name: str
    ) -> None:
        await NotificationService.create_notification(
            customer_id=customer_id,
            user_id=user_id,
            title="Segment Updated",
            message=f'Segment "{name}" has been updated and is being reprocessed.',
            channel=SEGMENT_CHANNEL,
            metadata={"id": list_id, "name": name, "status": "new"},
            generated_by=SEGMENT_GENERATED_BY,
        )

    @staticmethod
    async def job_cancelled(
        customer_id: str,
        user_id: str,
        job_id: str,
        feature_slug: Optional[str] = None,
    ) -> None:
        if feature_slug:
            message = f"Your {format_feature_slug(feature_slug)} request was cancelled."
        else:
            message = "Your AI request was cancelled."
        await NotificationService.create_notification(
            customer_id=customer_id,
            user_id=user_id,
            title="AI Processing Cancelled",
            message=message,
            channel=LLM_CHANNEL,
            metadata={
                "job_id": job_id,
                "feature_slug": feature_slug,
                "notification_type": "job_cancelled",
            },
            generated_by=LLM_GENERATED_BY,
        )
