from fastapi import APIRouter, HTTPException, Depends, Query, Response, status
from typing import List, Optional

from crealink.models.schemas import (
    CREATOR_ROLES,
    Project,
    ProjectApplication,
    ProjectApplicationCreate,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    User,
)
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import get_bearer_token, require_user

router = APIRouter(prefix="/projects", tags=["Projects"])


def _get_project(firestore_ops: FirestoreBaseModel, project_id: str) -> Project:
    project = firestore_ops.get(collection_name="projects", document_id=project_id, pydantic_model=Project)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _get_owned_project(firestore_ops: FirestoreBaseModel, project_id: str, user: User, action: str) -> Project:
    project = _get_project(firestore_ops, project_id)
    if project.creator_id != user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Not authorized to {action} this project")
    return project


def _save_project(firestore_ops: FirestoreBaseModel, project: Project) -> Project:
    saved_id = firestore_ops.save(collection_name="projects", data_model=project.model_dump(), document_id=project.id)
    if not saved_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save project")
    return project


@router.post("/", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(project_in: ProjectCreate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    if current_user.role not in CREATOR_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only creators can create projects")

    project = Project(creator_id=current_user.uid, **project_in.model_dump())
    return _save_project(firestore_ops, project)


@router.get("/", response_model=List[Project])
async def list_projects(status_filter: Optional[ProjectStatus] = Query(default=None, alias="status")):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    filters = [("status", "==", status_filter)] if status_filter else []
    projects = firestore_ops.query_many(collection_name="projects", filters=filters, pydantic_model=Project)
    # Sorted here; ordered queries skip documents without `created_at`
    return sorted(projects, key=lambda p: p.created_at, reverse=True)


@router.get("/{project_id}", response_model=Project)
async def get_project_details(project_id: str):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    return _get_project(firestore_ops, project_id)


@router.put("/{project_id}", response_model=Project)
async def update_project(project_id: str, project_update: ProjectUpdate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    project = _get_owned_project(firestore_ops, project_id, current_user, "update")

    updates = project_update.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    if not firestore_ops.update(collection_name="projects", document_id=project_id, updates=updates):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update project")

    return Project(**{**project.model_dump(), **updates})


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    _get_owned_project(firestore_ops, project_id, current_user, "delete")

    if not firestore_ops.delete(collection_name="projects", document_id=project_id):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not delete project")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/apply", response_model=Project)
async def apply_to_project(
    project_id: str,
    application_in: ProjectApplicationCreate,
    token: str = Depends(get_bearer_token),
):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    project = _get_project(firestore_ops, project_id)

    if current_user.role != "expert":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only experts can apply to projects")
    if project.status != "ouvert":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project is not open")
    if any(a.provider_id == current_user.uid for a in project.applications):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already applied to this project")

    project.applications.append(ProjectApplication(provider_id=current_user.uid, **application_in.model_dump()))
    return _save_project(firestore_ops, project)


@router.patch("/{project_id}/assign/{provider_id}", response_model=Project)
async def assign_provider(project_id: str, provider_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)
    project = _get_owned_project(firestore_ops, project_id, current_user, "assign")

    if project.status != "ouvert":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Project is not open")
    if not any(a.provider_id == provider_id for a in project.applications):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")

    project.provider_id = provider_id
    project.status = "en_cours"
    return _save_project(firestore_ops, project)
