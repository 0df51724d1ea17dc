"""
services/processing_trigger.py
------------------------------
Kick off the downstream segment-processing pipeline.

Runs as a background task after a segment is created or its filters change.
The pipeline itself lives elsewhere; this only POSTs the segment reference
and logs (never raises) on failure.
"""

import httpx

from forge.core.config import settings
from forge.core.logging import get_logger

logger = get_logger(__name__)

TRIGGER_TIMEOUT_SECONDS = 10


async def trigger_segment_processing(segment_id: str, customer_id: str) -> None:
    if not settings.SEGMENTS_PROCESS_URL:
        logger.warning(
            "SEGMENTS_PROCESS_URL not set, cannot trigger background processing",
            segment_id=segment_id,
        )
        return

    headers = {"Content-Type": "application/json"}
    if settings.SERVICE_API_KEY:
        headers["Authorization"] = f"Bearer {settings.SERVICE_API_KEY}"

    try:
        async with httpx.AsyncClient(timeout=TRIGGER_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.SEGMENTS_PROCESS_URL,
                json={"segment_id": segment_id, "customer_id": customer_id},
                headers=headers,
            )
            response.raise_for_status()
        logger.info("Segment processing triggered", segment_id=segment_id)
    except httpx.HTTPError as exc:
        logger.error(
            "Failed to trigger segment processing",
            segment_id=segment_id,
            error=str(exc),
        )
