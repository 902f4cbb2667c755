from fastapi import APIRouter, HTTPException, Depends, Response, status
from typing import List

from crealink.models.schemas import PortfolioItem, PortfolioItemCreate, User
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.routers.auth import get_bearer_token, require_user

router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


@router.get("/{expert_id}", response_model=List[PortfolioItem])
async def list_portfolio(expert_id: str):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    items = firestore_ops.query(
        collection_name="portfolio",
        field="expert_id",
        operator="==",
        value=expert_id,
        pydantic_model=PortfolioItem,
    )
    # Sorted here to avoid needing a composite index
    return sorted(items, key=lambda item: item.created_at, reverse=True)


@router.post("/", response_model=PortfolioItem, status_code=status.HTTP_201_CREATED)
async def add_portfolio_item(item_in: PortfolioItemCreate, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    if current_user.role != "expert":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only experts have a portfolio")

    item = PortfolioItem(
        expert_id=current_user.uid,
        expert_name=current_user.display_name,
        **item_in.model_dump(),
    )
    saved_id = firestore_ops.save(collection_name="portfolio", data_model=item.model_dump(), document_id=item.id)
    if not saved_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save portfolio item")
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio_item(item_id: str, token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    current_user: User = require_user(firestore_ops, token)

    item = firestore_ops.get(collection_name="portfolio", document_id=item_id, pydantic_model=PortfolioItem)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Portfolio item not found")
    if item.expert_id != current_user.uid:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this item")

    if not firestore_ops.delete(collection_name="portfolio", document_id=item_id):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not delete portfolio item")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
