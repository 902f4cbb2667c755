from datetime import datetime, timedelta, timezone

import pytest

from crealink.models.schemas import (
    Contract,
    ContractFeedback,
    Deliverable,
    FeedbackEntry,
    Job,
    Milestone,
    Rating,
)

START = datetime(2025, 3, 1, tzinfo=timezone.utc)
END = START + timedelta(days=30)

CONTRACT_PAYLOAD = {
    "job_id": "j1",
    "expert_id": "exp",
    "title": "Vlog editing",
    "description": "Four vlogs over a month",
    "amount": 800,
    "start_date": START.isoformat(),
    "end_date": END.isoformat(),
    "terms": "Two revisions per video",
    "deliverables": [{"description": "Vlog 1"}, {"description": "Vlog 2"}],
    "milestones": [{"description": "Deposit", "amount": 200}],
}


@pytest.fixture
def make_contract():
    def _make_contract(contract_id="c1", **fields):
        data = {
            **CONTRACT_PAYLOAD,
            "start_date": START,
            "end_date": END,
            "deliverables": [Deliverable(description="Vlog 1"), Deliverable(description="Vlog 2")],
            "milestones": [Milestone(description="Deposit", amount=200)],
            "creator_id": "owner",
            **fields,
        }
        return Contract(id=contract_id, **data)
    return _make_contract


@pytest.fixture
def job_doc():
    return Job(
        id="j1",
        creator_id="owner",
        title="Vlog editing",
        description="Monthly vlogs",
        job_type="creator-post",
        category="editing",
        budget=800,
        duration="1 month",
    )


# --- Tests for POST /contracts/ ---

def test_create_contract(client, documents, login, make_user, job_doc):
    headers = login(make_user(uid="owner"))
    documents[("jobs", "j1")] = job_doc
    documents[("users", "exp")] = make_user(uid="exp", role="expert")

    response = client.post("/contracts/", json=CONTRACT_PAYLOAD, headers=headers)

    assert response.status_code == 201
    data = response.json()
    assert data["creator_id"] == "owner"
    assert data["creator_approved"] is True
    assert data["expert_approved"] is False
    assert data["status"] == "pending"
    assert data["payment_status"] == "pending"
    assert documents[("jobs", "j1")]["status"] == "in-progress"
    assert documents[("jobs", "j1")]["assigned_to"] == "exp"


def test_create_contract_not_job_owner(client, documents, login, make_user, job_doc):
    headers = login(make_user(uid="intruder"))
    documents[("jobs", "j1")] = job_doc

    response = client.post("/contracts/", json=CONTRACT_PAYLOAD, headers=headers)

    assert response.status_code == 403


def test_create_contract_expert_missing(client, documents, login, make_user, job_doc):
    headers = login(make_user(uid="owner"))
    documents[("jobs", "j1")] = job_doc
    documents[("users", "exp")] = make_user(uid="exp", role="creator")

    response = client.post("/contracts/", json=CONTRACT_PAYLOAD, headers=headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Expert not found"


def test_create_contract_bad_dates(client, documents, login, make_user, job_doc):
    headers = login(make_user(uid="owner"))
    documents[("jobs", "j1")] = job_doc
    documents[("users", "exp")] = make_user(uid="exp", role="expert")
    payload = {**CONTRACT_PAYLOAD, "end_date": (START - timedelta(days=1)).isoformat()}

    response = client.post("/contracts/", json=payload, headers=headers)

    assert response.status_code == 400


def test_create_contract_job_missing(client, login, make_user):
    headers = login(make_user(uid="owner"))

    response = client.post("/contracts/", json=CONTRACT_PAYLOAD, headers=headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Job not found"


# --- Tests for GET /contracts/ ---

def test_list_contracts_merges_both_sides(client, mock_firestore_ops, login, make_user, make_contract):
    headers = login(make_user(uid="me"))
    as_creator = [
        make_contract("c1", creator_id="me", created_at=START),
        make_contract("c3", creator_id="me", expert_id="me", created_at=START + timedelta(days=2)),
    ]
    as_expert = [
        make_contract("c2", expert_id="me", created_at=START + timedelta(days=1)),
        make_contract("c3", creator_id="me", expert_id="me", created_at=START + timedelta(days=2)),
    ]

    def fake_query_many(collection_name, filters, **kwargs):
        return as_creator if filters[0][0] == "creator_id" else as_expert

    mock_firestore_ops.query_many.side_effect = fake_query_many

    response = client.get("/contracts/", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert [c["id"] for c in data["contracts"]] == ["c3", "c2", "c1"]
    assert data["pagination"] == {"total": 3, "page": 1, "pages": 1}


def test_list_contracts_status_filter(client, mock_firestore_ops, login, make_user):
    headers = login(make_user(uid="me"))

    client.get("/contracts/", params={"status": "active"}, headers=headers)

    for call in mock_firestore_ops.query_many.call_args_list:
        assert ("status", "==", "active") in call.kwargs["filters"]
    assert mock_firestore_ops.query_many.call_count == 2


# --- Tests for GET /contracts/{contract_id} ---

def test_get_contract_party_only(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="stranger"))
    documents[("contracts", "c1")] = make_contract()

    response = client.get("/contracts/c1", headers=headers)

    assert response.status_code == 403


def test_get_contract_as_expert(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("contracts", "c1")] = make_contract()

    response = client.get("/contracts/c1", headers=headers)

    assert response.status_code == 200
    assert response.json()["id"] == "c1"


# --- Approval ---

def test_expert_approval_activates(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("contracts", "c1")] = make_contract(creator_approved=True)

    response = client.patch("/contracts/c1/approve", headers=headers)

    assert response.status_code == 200
    assert response.json()["status"] == "active"
    assert documents[("contracts", "c1")]["expert_approved"] is True


def test_creator_cannot_approve_for_expert(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract(creator_approved=True)

    response = client.patch("/contracts/c1/approve", headers=headers)

    assert response.status_code == 403


# --- Deliverables ---

def test_complete_one_deliverable(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("contracts", "c1")] = make_contract(status="active")

    response = client.patch("/contracts/c1/deliverables/0/complete", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["deliverables"][0]["is_completed"] is True
    assert data["deliverables"][0]["completed_at"] is not None
    assert data["status"] == "active"


def test_completing_last_deliverable_completes_contract_and_job(
    client, documents, login, make_user, make_contract, job_doc
):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("jobs", "j1")] = job_doc
    documents[("contracts", "c1")] = make_contract(
        status="active",
        deliverables=[Deliverable(description="Vlog 1", is_completed=True), Deliverable(description="Vlog 2")],
    )

    response = client.patch("/contracts/c1/deliverables/1/complete", headers=headers)

    assert response.json()["status"] == "completed"
    assert documents[("jobs", "j1")]["status"] == "completed"
    assert documents[("jobs", "j1")]["end_date"] is not None


def test_complete_deliverable_out_of_range(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("contracts", "c1")] = make_contract(status="active")

    response = client.patch("/contracts/c1/deliverables/5/complete", headers=headers)

    assert response.status_code == 404


def test_complete_deliverable_inactive(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("contracts", "c1")] = make_contract()

    response = client.patch("/contracts/c1/deliverables/0/complete", headers=headers)

    assert response.status_code == 400


# --- Milestones and status ---

def test_only_creator_marks_milestone_paid(client, documents, login, make_user, make_contract):
    documents[("contracts", "c1")] = make_contract(status="active")

    expert_headers = login(make_user(uid="exp", role="expert"))
    assert client.patch("/contracts/c1/milestones/0", json={"status": "paid"}, headers=expert_headers).status_code == 403
    assert client.patch("/contracts/c1/milestones/0", json={"status": "completed"}, headers=expert_headers).status_code == 200

    creator_headers = login(make_user(uid="owner"))
    response = client.patch("/contracts/c1/milestones/0", json={"status": "paid"}, headers=creator_headers)

    assert response.status_code == 200
    assert response.json()["milestones"][0]["status"] == "paid"


def test_update_contract_status(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract(status="active")

    response = client.put("/contracts/c1/status", json={"status": "disputed"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["status"] == "disputed"
    assert documents[("contracts", "c1")]["status"] == "disputed"


def test_update_contract_status_invalid(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract()

    response = client.put("/contracts/c1/status", json={"status": "exploded"}, headers=headers)

    assert response.status_code == 422


# --- Feedback ---

def test_creator_feedback_updates_expert_rating(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("users", "exp")] = make_user(uid="exp", role="expert", rating=Rating(average=4.0, count=1))
    documents[("contracts", "c1")] = make_contract(status="completed")

    response = client.post("/contracts/c1/feedback", json={"rating": 5, "comment": "Great"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["feedback"]["creator_to_expert"]["rating"] == 5
    assert documents[("users", "exp")]["rating"] == {"average": 4.5, "count": 2}


def test_expert_feedback(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="exp", role="expert"))
    documents[("contracts", "c1")] = make_contract(status="completed")

    response = client.post("/contracts/c1/feedback", json={"rating": 4}, headers=headers)

    assert response.status_code == 200
    assert response.json()["feedback"]["expert_to_creator"]["rating"] == 4


def test_feedback_twice_rejected(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract(
        status="completed",
        feedback=ContractFeedback(creator_to_expert=FeedbackEntry(rating=3)),
    )

    response = client.post("/contracts/c1/feedback", json={"rating": 5}, headers=headers)

    assert response.status_code == 400


def test_feedback_requires_completed_contract(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract(status="active")

    response = client.post("/contracts/c1/feedback", json={"rating": 5}, headers=headers)

    assert response.status_code == 400


def test_feedback_rating_bounds(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract(status="completed")

    response = client.post("/contracts/c1/feedback", json={"rating": 6}, headers=headers)

    assert response.status_code == 422


def test_feedback_save_failure_leaves_rating_untouched(client, documents, mock_firestore_ops, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("users", "exp")] = make_user(uid="exp", role="expert", rating=Rating(average=4.0, count=1))
    documents[("contracts", "c1")] = make_contract(status="completed")
    mock_firestore_ops.save.side_effect = None
    mock_firestore_ops.save.return_value = None

    # A retry after the failed save must not count the same rating twice
    for _ in range(2):
        response = client.post("/contracts/c1/feedback", json={"rating": 5}, headers=headers)
        assert response.status_code == 500

    assert documents[("users", "exp")].rating == Rating(average=4.0, count=1)
    assert all(call.kwargs["collection_name"] != "users" for call in mock_firestore_ops.update.call_args_list)


def test_feedback_saved_when_expert_missing(client, documents, login, make_user, make_contract):
    headers = login(make_user(uid="owner"))
    documents[("contracts", "c1")] = make_contract(status="completed")

    response = client.post("/contracts/c1/feedback", json={"rating": 5}, headers=headers)

    assert response.status_code == 200
    assert documents[("contracts", "c1")]["feedback"]["creator_to_expert"]["rating"] == 5
