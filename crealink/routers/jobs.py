from fastapi import APIRouter, HTTPException, Depends, Query, Response, status
from datetime import datetime, timezone
from loguru import logger
from math import ceil
from typing import List, Literal, Optional

from crealink.core.config import get_settings
from crealink.models.schemas import (
    CREATOR_ROLES,
    Job,
    JobApplicant,
    JobApplication,
    JobCategory,
    JobCreate,
    JobList,
    JobLocation,
    JobStatus,
    JobType,
    JobUpdate,
    Pagination,
    User,
)
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import get_bearer_token, require_user

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _get_job(firestore_ops: FirestoreBaseModel, job_id: str) -> Job:
    job = firestore_ops.get(collection_name="jobs", document_id=job_id, pydantic_model=Job)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return job


def _get_owned_job(firestore_ops: FirestoreBaseModel, job_id: str, user: User, action: str) -> Job:
    job = _get_job(firestore_ops, job_id)
    if job.creator_id != user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not authorized to {action} this job")
    return job


def _save_job(firestore_ops: FirestoreBaseModel, job: Job) -> Job:
    saved_id = firestore_ops.save(collection_name="jobs", data_model=job.model_dump(), document_id=job.id)
    if not saved_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save job")
    return job


def _matches_search(job: Job, search: str) -> bool:
    needle = search.lower()
    return needle in job.title.lower() or needle in job.description.lower()


@router.get("/", response_model=JobList)
async def list_jobs(
    job_type: Optional[JobType] = None,
    category: Optional[JobCategory] = None,
    status_filter: Optional[JobStatus] = Query(default=None, alias="status"),
    location: Optional[JobLocation] = None,
    min_budget: Optional[float] = None,
    max_budget: Optional[float] = None,
    skills: Optional[List[str]] = Query(default=None),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    sort_by: Literal["created_at", "budget", "views"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    limit = limit or get_settings().default_page_size

    filters = []
    if job_type:
        filters.append(("job_type", "==", job_type))
    if category:
        filters.append(("category", "==", category))
    if status_filter:
        filters.append(("status", "==", status_filter))
    if location:
        filters.append(("location", "==", location))

    jobs: List[Job] = firestore_ops.query_many(
        collection_name="jobs",
        filters=filters,
        order_by=sort_by,
        descending=sort_order == "desc",
        pydantic_model=Job,
    )

    # Range, membership and text filters are applied here; the store only takes equality filters
    if min_budget is not None:
        jobs = [j for j in jobs if j.budget >= min_budget]
    if max_budget is not None:
        jobs = [j for j in jobs if j.budget <= max_budget]
    if skills:
        wanted = set(skills)
        jobs = [j for j in jobs if wanted & set(j.skills)]
    if search:
        jobs = [j for j in jobs if _matches_search(j, search)]

    total = len(jobs)
    start = (page - 1) * limit
    return JobList(
        jobs=jobs[start:start + limit],
        pagination=Pagination(total=total, page=page, pages=ceil(total / limit)),
    )


@router.get("/{job_id}", response_model=Job)
async def get_job(job_id: str):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    job = _get_job(firestore_ops, job_id)

    job.views += 1
    if not firestore_ops.update(collection_name="jobs", document_id=job_id, updates={"views": job.views}):
        logger.warning(f"Could not record view for job {job_id}")
    return job


@router.post("/", response_model=Job, status_code=status.HTTP_201_CREATED)
async def create_job(job_in: JobCreate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    if job_in.job_type == "creator-post" and current_user.role not in CREATOR_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only creators can post creator offers")
    if job_in.job_type == "expert-post" and current_user.role != "expert":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only experts can post expert offers")

    job = Job(creator_id=current_user.uid, **job_in.model_dump())
    return _save_job(firestore_ops, job)


@router.put("/{job_id}", response_model=Job)
async def update_job(job_id: str, job_update: JobUpdate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    job = _get_owned_job(firestore_ops, job_id, current_user, "update")

    updates = job_update.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    if not firestore_ops.update(collection_name="jobs", document_id=job_id, updates=updates):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update job")

    return Job(**{**job.model_dump(), **updates})


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    _get_owned_job(firestore_ops, job_id, current_user, "delete")

    if not firestore_ops.delete(collection_name="jobs", document_id=job_id):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not delete job")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{job_id}/apply", response_model=Job)
async def apply_to_job(job_id: str, application: JobApplication, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    job = _get_job(firestore_ops, job_id)

    if job.creator_id == current_user.uid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot apply to your own job")
    if job.status != "open":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job is not open for applications")
    if any(a.user_id == current_user.uid for a in job.applicants):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already applied to this job")

    job.applicants.append(JobApplicant(user_id=current_user.uid, **application.model_dump()))
    return _save_job(firestore_ops, job)


@router.patch("/{job_id}/accept/{applicant_id}", response_model=Job)
async def accept_applicant(job_id: str, applicant_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    job = _get_owned_job(firestore_ops, job_id, current_user, "accept applicants for")

    if not any(a.user_id == applicant_id for a in job.applicants):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Applicant not found")

    # Accepting one applicant rejects all others
    for applicant in job.applicants:
        applicant.status = "accepted" if applicant.user_id == applicant_id else "rejected"
    job.status = "in-progress"
    job.assigned_to = applicant_id
    job.start_date = datetime.now(timezone.utc)
    return _save_job(firestore_ops, job)


@router.patch("/{job_id}/reject/{applicant_id}", response_model=Job)
async def reject_applicant(job_id: str, applicant_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    job = _get_owned_job(firestore_ops, job_id, current_user, "reject applicants for")

    applicant = next((a for a in job.applicants if a.user_id == applicant_id), None)
    if not applicant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Applicant not found")

    applicant.status = "rejected"
    return _save_job(firestore_ops, job)


@router.patch("/{job_id}/complete", response_model=Job)
async def complete_job(job_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    job = _get_owned_job(firestore_ops, job_id, current_user, "complete")

    if job.status != "in-progress":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job is not in progress")

    job.status = "completed"
    job.end_date = datetime.now(timezone.utc)
    _save_job(firestore_ops, job)

    if job.assigned_to:
        expert = firestore_ops.get(collection_name="users", document_id=job.assigned_to, pydantic_model=User)
        if expert:
            firestore_ops.update(
                collection_name="users",
                document_id=expert.uid,
                updates={"completed_jobs": expert.completed_jobs + 1},
            )
    return job
