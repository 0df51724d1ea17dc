import json
from datetime import timedelta

import pytest
from sqlalchemy import select

from forge.core.config import settings
from forge.db.base import utcnow
from forge.models import CompanyScoringQueue, CustomerCompany, ScoringQueueStatus
from tests.factories import COMPANY_ID, make_company

DIFFBOT = {"name": "Acme Robotics", "nbEmployees": 120, "industries": ["Robotics"]}

GOOD_RESULT = {
    "score": 7,
    "short_description": "Strong fit for mid-market automation.",
    "full_description": "Acme Robotics builds warehouse robots for logistics firms.",
}


def body(customer_id, company_id=COMPANY_ID):
    return {"company_id": company_id, "customer_id": customer_id}


@pytest.mark.asyncio
async def test_scores_and_persists(client, db, customer, mock_llm):
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    mock_llm.return_value = json.dumps(GOOD_RESULT)

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 200
    assert response.json() == {"status": "completed", **GOOD_RESULT}
    assert isinstance(response.json()["score"], int)
    assert mock_llm.await_count == 1
    kwargs = mock_llm.call_args.kwargs
    assert kwargs["purpose"] == "company_scoring"
    assert "Acme Robotics" in kwargs["user_message"]

    db.expire_all()
    row = await db.scalar(select(CustomerCompany))
    assert row.last_scoring_results == {
        "score": 7,
        "short_description": GOOD_RESULT["short_description"],
        "full_description": GOOD_RESULT["full_description"],
    }
    assert row.scoring_results_updated_at is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"company_id": COMPANY_ID},
        {"company_id": "not-a-uuid", "customer_id": COMPANY_ID},
        {"company_id": COMPANY_ID, "customer_id": ""},
        {"company_id": 123, "customer_id": COMPANY_ID},
    ],
)
async def test_rejects_bad_ids(client, mock_llm, payload):
    response = await client.post("/company-scoring", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "company_id and customer_id are required (valid UUIDs)"
    mock_llm.assert_not_called()


@pytest.mark.asyncio
async def test_company_not_found(client, customer, mock_llm):
    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 404
    assert response.json()["detail"] == "Company not found"


@pytest.mark.asyncio
async def test_customer_not_found(client, db, customer, mock_llm):
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT, link=False)

    response = await client.post(
        "/company-scoring", json=body("d4e5f6a7-b8c9-4013-9456-789012abcdef")
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Customer not found"


@pytest.mark.asyncio
async def test_association_not_found(client, db, customer, mock_llm):
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT, link=False)

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 404
    assert response.json()["detail"] == "Customer company record not found"
    mock_llm.assert_not_called()


@pytest.mark.asyncio
async def test_recently_scored_is_skipped(client, db, customer, mock_llm):
    await make_company(
        db,
        customer.customer_id,
        diffbot_json=DIFFBOT,
        scored_at=utcnow() - timedelta(days=5),
    )

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 200
    assert response.json() == {"status": "skipped", "reason": "recently_scored"}
    mock_llm.assert_not_called()


@pytest.mark.asyncio
async def test_stale_score_is_refreshed(client, db, customer, mock_llm):
    await make_company(
        db,
        customer.customer_id,
        diffbot_json=DIFFBOT,
        scored_at=utcnow() - timedelta(days=settings.SCORING_STALENESS_DAYS + 1),
    )
    mock_llm.return_value = json.dumps(GOOD_RESULT)

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert mock_llm.await_count == 1


@pytest.mark.asyncio
async def test_missing_enrichment(client, db, customer, mock_llm):
    await make_company(db, customer.customer_id)

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Diffbot data not found for company")
    mock_llm.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content, detail",
    [
        ("", "No response content from OpenAI"),
        ("this is not json", "Failed to parse OpenAI response"),
        (
            json.dumps({"score": 7, "short_description": "ok"}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "score": 11}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "score": -0.5}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "score": "7"}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "short_description": ""}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "short_description": "   "}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "full_description": "\n\t "}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "score": True}),
            "OpenAI response missing valid score or descriptions",
        ),
        (
            json.dumps({**GOOD_RESULT, "confidence": 0.9}),
            "OpenAI response missing valid score or descriptions",
        ),
    ],
)
async def test_invalid_llm_output(client, db, customer, mock_llm, content, detail):
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    mock_llm.return_value = content

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 500
    assert response.json()["detail"] == detail

    db.expire_all()
    row = await db.scalar(select(CustomerCompany))
    assert row.last_scoring_results is None


@pytest.mark.asyncio
async def test_service_key_required_when_configured(client, db, customer, mock_llm, monkeypatch):
    monkeypatch.setattr(settings, "SERVICE_API_KEY", "internal-key")
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    mock_llm.return_value = json.dumps(GOOD_RESULT)

    denied = await client.post("/company-scoring", json=body(customer.customer_id))
    wrong = await client.post(
        "/company-scoring",
        json=body(customer.customer_id),
        headers={"X-Service-Key": "nope"},
    )
    allowed = await client.post(
        "/company-scoring",
        json=body(customer.customer_id),
        headers={"X-Service-Key": "internal-key"},
    )

    assert denied.status_code == 401
    assert wrong.status_code == 401
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_fractional_score_is_kept(client, db, customer, mock_llm):
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    mock_llm.return_value = json.dumps({**GOOD_RESULT, "score": 7.5})

    response = await client.post("/company-scoring", json=body(customer.customer_id))

    assert response.status_code == 200
    assert response.json()["score"] == 7.5


@pytest.mark.asyncio
async def test_scoring_sends_no_token_cap(client, db, customer, mock_llm):
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    mock_llm.return_value = json.dumps(GOOD_RESULT)

    await client.post("/company-scoring", json=body(customer.customer_id))

    assert mock_llm.call_args.kwargs.get("max_tokens") is None


# ── Worker ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_worker_drains_queue(client, db, customer, mock_llm):
    unscorable = "e5f6a7b8-c9d0-4124-8567-890123abcdef"
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    await make_company(db, customer.customer_id, company_id=unscorable)
    db.add_all(
        [
            CompanyScoringQueue(customer_id=customer.customer_id, company_id=COMPANY_ID),
            CompanyScoringQueue(customer_id=customer.customer_id, company_id=unscorable),
        ]
    )
    await db.commit()
    mock_llm.return_value = json.dumps(GOOD_RESULT)

    response = await client.post("/company-scoring/worker")

    assert response.status_code == 200
    assert response.json() == {"processed": 2, "completed": 1, "failed": 1}

    db.expire_all()
    rows = {
        row.company_id: row
        for row in (await db.scalars(select(CompanyScoringQueue))).all()
    }
    assert rows[COMPANY_ID].status == ScoringQueueStatus.completed.value
    assert rows[unscorable].status == ScoringQueueStatus.failed.value
    assert rows[unscorable].error_message.startswith("Diffbot data not found")


@pytest.mark.asyncio
async def test_worker_with_empty_queue(client, mock_llm):
    response = await client.post("/company-scoring/worker")

    assert response.status_code == 200
    assert response.json() == {"processed": 0, "completed": 0, "failed": 0}


@pytest.mark.asyncio
async def test_worker_marks_unexpected_errors_failed(client, db, customer, mock_llm):
    second = "f6a7b8c9-d0e1-4235-8678-901234abcdef"
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    await make_company(db, customer.customer_id, company_id=second, diffbot_json=DIFFBOT)
    db.add_all(
        [
            CompanyScoringQueue(customer_id=customer.customer_id, company_id=COMPANY_ID),
            CompanyScoringQueue(customer_id=customer.customer_id, company_id=second),
        ]
    )
    await db.commit()
    mock_llm.side_effect = RuntimeError("connection reset")

    response = await client.post("/company-scoring/worker")

    assert response.status_code == 200
    assert response.json() == {"processed": 2, "completed": 0, "failed": 2}
    assert mock_llm.await_count == 2

    db.expire_all()
    rows = (await db.scalars(select(CompanyScoringQueue))).all()
    assert {row.status for row in rows} == {ScoringQueueStatus.failed.value}
    assert {row.error_message for row in rows} == {"connection reset"}


@pytest.mark.asyncio
async def test_worker_reclaims_stale_processing_rows(client, db, customer, mock_llm):
    busy = "a7b8c9d0-e1f2-4346-8789-012345abcdef"
    await make_company(db, customer.customer_id, diffbot_json=DIFFBOT)
    await make_company(db, customer.customer_id, company_id=busy, diffbot_json=DIFFBOT)
    stale_at = utcnow() - timedelta(minutes=settings.SCORING_WORKER_STALE_MINUTES + 5)
    db.add_all(
        [
            CompanyScoringQueue(
                customer_id=customer.customer_id,
                company_id=COMPANY_ID,
                status=ScoringQueueStatus.processing.value,
                updated_at=stale_at,
            ),
            CompanyScoringQueue(
                customer_id=customer.customer_id,
                company_id=busy,
                status=ScoringQueueStatus.processing.value,
                updated_at=utcnow(),
            ),
        ]
    )
    await db.commit()
    mock_llm.return_value = json.dumps(GOOD_RESULT)

    response = await client.post("/company-scoring/worker")

    assert response.json() == {"processed": 1, "completed": 1, "failed": 0}
    db.expire_all()
    rows = {
        row.company_id: row
        for row in (await db.scalars(select(CompanyScoringQueue))).all()
    }
    assert rows[COMPANY_ID].status == ScoringQueueStatus.completed.value
    assert rows[busy].status == ScoringQueueStatus.processing.value
