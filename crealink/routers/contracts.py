from fastapi import APIRouter, HTTPException, Depends, Query, status
from datetime import datetime, timezone
from loguru import logger
from math import ceil
from typing import Dict, Optional

from crealink.core.config import get_settings
from crealink.models.schemas import (
    Contract,
    ContractCreate,
    ContractList,
    ContractStatus,
    ContractStatusUpdate,
    FeedbackCreate,
    FeedbackEntry,
    Job,
    MilestoneStatusUpdate,
    Pagination,
    User,
)
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import get_bearer_token, require_user

router = APIRouter(prefix="/contracts", tags=["Contracts"])


def _get_contract(firestore_ops: FirestoreBaseModel, contract_id: str) -> Contract:
    contract = firestore_ops.get(collection_name="contracts", document_id=contract_id, pydantic_model=Contract)
    if not contract:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
    return contract


def _get_party_contract(firestore_ops: FirestoreBaseModel, contract_id: str, user: User, action: str) -> Contract:
    contract = _get_contract(firestore_ops, contract_id)
    if user.uid not in (contract.creator_id, contract.expert_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not authorized to {action} this contract")
    return contract


def _save_contract(firestore_ops: FirestoreBaseModel, contract: Contract) -> Contract:
    saved_id = firestore_ops.save(collection_name="contracts", data_model=contract.model_dump(), document_id=contract.id)
    if not saved_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save contract")
    return contract


@router.post("/", response_model=Contract, status_code=status.HTTP_201_CREATED)
async def create_contract(contract_in: ContractCreate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    job = firestore_ops.get(collection_name="jobs", document_id=contract_in.job_id, pydantic_model=Job)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if job.creator_id != current_user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to create a contract for this job")

    expert = firestore_ops.get(collection_name="users", document_id=contract_in.expert_id, pydantic_model=User)
    if not expert or expert.role != "expert":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expert not found")

    if contract_in.end_date < contract_in.start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End date is before start date")

    # The creator approves the contract they draft
    contract = Contract(creator_id=current_user.uid, creator_approved=True, **contract_in.model_dump())
    _save_contract(firestore_ops, contract)

    firestore_ops.update(
        collection_name="jobs",
        document_id=job.id,
        updates={"status": "in-progress", "assigned_to": expert.uid},
    )
    return contract


@router.get("/", response_model=ContractList)
async def list_my_contracts(
    status_filter: Optional[ContractStatus] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    token: str = Depends(get_bearer_token),
):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    limit = limit or get_settings().default_page_size

    # No OR across fields in the store: one query per side, merged here
    contracts: Dict[str, Contract] = {}
    for field in ("creator_id", "expert_id"):
        filters = [(field, "==", current_user.uid)]
        if status_filter:
            filters.append(("status", "==", status_filter))
        for contract in firestore_ops.query_many(collection_name="contracts", filters=filters, pydantic_model=Contract):
            contracts[contract.id] = contract

    ordered = sorted(contracts.values(), key=lambda c: c.created_at, reverse=True)
    total = len(ordered)
    start = (page - 1) * limit
    return ContractList(
        contracts=ordered[start:start + limit],
        pagination=Pagination(total=total, page=page, pages=ceil(total / limit)),
    )


@router.get("/{contract_id}", response_model=Contract)
async def get_contract_details(contract_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    return _get_party_contract(firestore_ops, contract_id, current_user, "view")


@router.patch("/{contract_id}/approve", response_model=Contract)
async def approve_contract(contract_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    contract = _get_contract(firestore_ops, contract_id)

    if contract.expert_id != current_user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to approve this contract")

    contract.expert_approved = True
    if contract.creator_approved:
        contract.status = "active"
    return _save_contract(firestore_ops, contract)


@router.patch("/{contract_id}/deliverables/{deliverable_index}/complete", response_model=Contract)
async def complete_deliverable(contract_id: str, deliverable_index: int, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    contract = _get_party_contract(firestore_ops, contract_id, current_user, "modify")

    if contract.status != "active":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Contract is not active")
    if not 0 <= deliverable_index < len(contract.deliverables):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deliverable not found")

    now = datetime.now(timezone.utc)
    deliverable = contract.deliverables[deliverable_index]
    deliverable.is_completed = True
    deliverable.completed_at = now

    if all(d.is_completed for d in contract.deliverables):
        contract.status = "completed"
        firestore_ops.update(
            collection_name="jobs",
            document_id=contract.job_id,
            updates={"status": "completed", "end_date": now},
        )

    return _save_contract(firestore_ops, contract)


@router.patch("/{contract_id}/milestones/{milestone_index}", response_model=Contract)
async def update_milestone_status(
    contract_id: str,
    milestone_index: int,
    milestone_update: MilestoneStatusUpdate,
    token: str = Depends(get_bearer_token),
):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    contract = _get_party_contract(firestore_ops, contract_id, current_user, "modify")

    if not 0 <= milestone_index < len(contract.milestones):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Milestone not found")
    if milestone_update.status == "paid" and current_user.uid != contract.creator_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the creator can mark a milestone as paid")

    contract.milestones[milestone_index].status = milestone_update.status
    return _save_contract(firestore_ops, contract)


@router.put("/{contract_id}/status", response_model=Contract)
async def update_contract_status(
    contract_id: str,
    status_update: ContractStatusUpdate,
    token: str = Depends(get_bearer_token),
):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    contract = _get_party_contract(firestore_ops, contract_id, current_user, "update")

    if not firestore_ops.update(collection_name="contracts", document_id=contract_id, updates={"status": status_update.status}):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update contract status")

    contract.status = status_update.status
    return contract


@router.post("/{contract_id}/feedback", response_model=Contract)
async def add_feedback(contract_id: str, feedback_in: FeedbackCreate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    contract = _get_party_contract(firestore_ops, contract_id, current_user, "leave feedback on")

    if contract.status != "completed":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Feedback can only be left on a completed contract")

    entry = FeedbackEntry(rating=feedback_in.rating, comment=feedback_in.comment)

    if current_user.uid == contract.creator_id:
        if contract.feedback.creator_to_expert:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Feedback already submitted")
        contract.feedback.creator_to_expert = entry
    else:
        if contract.feedback.expert_to_creator:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Feedback already submitted")
        contract.feedback.expert_to_creator = entry

    # The rating only moves once the feedback is stored
    _save_contract(firestore_ops, contract)

    if current_user.uid == contract.creator_id:
        _add_expert_rating(firestore_ops, contract.expert_id, entry.rating)
    return contract


def _add_expert_rating(firestore_ops: FirestoreBaseModel, expert_id: str, rating: int):
    """Fold one more rating into the expert's running average."""
    expert = firestore_ops.get(collection_name="users", document_id=expert_id, pydantic_model=User)
    if not expert:
        logger.warning(f"Feedback saved but expert {expert_id} not found for rating update")
        return
    total = expert.rating.average * expert.rating.count
    count = expert.rating.count + 1
    if not firestore_ops.update(
        collection_name="users",
        document_id=expert.uid,
        updates={"rating": {"average": (total + rating) / count, "count": count}},
    ):
        logger.error(f"Could not update rating for expert {expert_id}")
