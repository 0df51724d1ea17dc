from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from forge.models import LLMJob, Notification, TERMINAL_JOB_STATUSES
from forge.services.job_service import JobService
from tests.factories import auth_headers, make_job, make_user


async def reload_job(db, job_id):
    db.expire_all()
    return await db.scalar(select(LLMJob).where(LLMJob.id == job_id))


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["queued", "running", "processing"])
async def test_cancel_active_job(client, db, user, headers, status):
    job = await make_job(db, user, status=status)

    response = await client.post("/llm-cancel", json={"job_id": job.id}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "cancelled": True,
        "job_id": job.id,
        "message": "Job cancelled successfully",
    }
    row = await reload_job(db, job.id)
    assert row.status == "cancelled"
    assert row.cancelled_at is not None
    assert row.completed_at is not None


@pytest.mark.asyncio
async def test_cancel_notifies_job_owner(client, db, user, headers):
    job = await make_job(db, user, feature_slug="content-generator")

    await client.post("/llm-cancel", json={"job_id": job.id}, headers=headers)

    notification = await db.scalar(select(Notification))
    assert notification.user_id == user.user_id
    assert notification.title == "AI Processing Cancelled"
    assert notification.message == "Your Content Generator request was cancelled."
    assert notification.channel == "llm"
    assert notification.extra == {
        "job_id": job.id,
        "feature_slug": "content-generator",
        "notification_type": "job_cancelled",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("status", TERMINAL_JOB_STATUSES)
async def test_terminal_job_is_409(client, db, user, headers, status):
    job = await make_job(db, user, status=status)

    response = await client.post("/llm-cancel", json={"job_id": job.id}, headers=headers)

    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_TERMINAL"
    assert (await reload_job(db, job.id)).status == status


@pytest.mark.asyncio
async def test_other_tenant_job_looks_missing(client, db, user, other_user, headers):
    foreign = await make_job(db, other_user)

    foreign_response = await client.post(
        "/llm-cancel", json={"job_id": foreign.id}, headers=headers
    )
    missing_response = await client.post(
        "/llm-cancel", json={"job_id": "no-such-job"}, headers=headers
    )

    assert foreign_response.status_code == 404
    assert foreign_response.json() == missing_response.json() == {
        "detail": "Job not found",
        "code": "JOB_NOT_FOUND",
    }
    assert (await reload_job(db, foreign.id)).status == "queued"


@pytest.mark.asyncio
async def test_colleague_job_hidden_from_regular_user(client, db, user, customer, headers):
    colleague = await make_user(db, "colleague@acme.test", customer.customer_id)
    job = await make_job(db, colleague)

    response = await client.post("/llm-cancel", json={"job_id": job.id}, headers=headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_cancels_colleague_job(client, db, user, customer):
    admin = await make_user(db, "admin@acme.test", customer.customer_id, role="admin")
    job = await make_job(db, user)

    response = await client.post(
        "/llm-cancel", json={"job_id": job.id}, headers=auth_headers(admin)
    )

    assert response.status_code == 200
    assert response.json()["cancelled"] is True
    notification = await db.scalar(select(Notification))
    assert notification.user_id == user.user_id


@pytest.mark.asyncio
async def test_job_finishing_mid_request_is_not_cancelled(client, db, user, headers):
    job = await make_job(db, user, status="completed")
    stale = LLMJob(
        id=job.id,
        customer_id=job.customer_id,
        user_id=job.user_id,
        feature_slug=job.feature_slug,
        status="processing",
    )

    with patch.object(JobService, "get_visible_job", new=AsyncMock(return_value=stale)):
        response = await client.post(
            "/llm-cancel", json={"job_id": job.id}, headers=headers
        )

    assert response.status_code == 200
    assert response.json() == {
        "cancelled": False,
        "job_id": job.id,
        "message": "Job was not cancelled (may have already completed)",
    }
    assert (await reload_job(db, job.id)).status == "completed"
    assert await db.scalar(select(Notification)) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"job_id": ""}, {"job_id": 123}])
async def test_invalid_body_is_400(client, headers, payload):
    response = await client.post("/llm-cancel", json=payload, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"detail": "job_id is required"}


@pytest.mark.asyncio
async def test_requires_authentication(client):
    response = await client.post("/llm-cancel", json={"job_id": "abc"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_requires_customer(client, system_user):
    response = await client.post(
        "/llm-cancel", json={"job_id": "abc"}, headers=auth_headers(system_user)
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "User must belong to a customer to cancel jobs"


@pytest.mark.asyncio
async def test_only_post_is_allowed(client, headers):
    response = await client.get("/llm-cancel", headers=headers)
    assert response.status_code == 405
