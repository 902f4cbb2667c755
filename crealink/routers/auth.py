from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from loguru import logger
from pydantic import ValidationError

from crealink.models.schemas import UserCreate, User
from crealink.db.firebase_ops import get_firestore_ops_instance, FirestoreBaseModel
from crealink.core.security import decode_access_token, revoke_tokens
from crealink.services.directory import ensure_display_name

router = APIRouter(prefix="/auth", tags=["Authentication"])

bearer_scheme = HTTPBearer()


async def get_bearer_token(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    return credentials.credentials


def authenticate(token: str) -> str:
    """Return the uid behind a Firebase ID token or raise 401."""
    user_id_from_token = decode_access_token(token)
    if not user_id_from_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id_from_token


def require_user(firestore_ops: FirestoreBaseModel, token: str) -> User:
    """Resolve the authenticated user's `users` document or raise 401/404."""
    user_id_from_token = authenticate(token)
    user_data = firestore_ops.get(collection_name="users", document_id=user_id_from_token)
    if not user_data:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Authenticated user not found")

    # Documents created by the web client only carry `displayName`
    ensure_display_name(firestore_ops, user_id_from_token, user_data)

    try:
        return User(**user_data)
    except ValidationError as e:
        logger.error(f"Unreadable users document {user_id_from_token}: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Authenticated user not found")


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register_user(user_in: UserCreate, token: str = Depends(get_bearer_token)):
    """Create the profile document for a freshly signed-up Firebase account."""
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    uid = authenticate(token)

    if firestore_ops.get(collection_name="users", document_id=uid):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already registered")

    if user_in.role == "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot self-register as admin")

    if user_in.email:
        existing_user_by_email = firestore_ops.query(collection_name="users", field="email", operator="==", value=user_in.email)
        if existing_user_by_email:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    new_user = User(uid=uid, **user_in.model_dump())

    saved_user_id = firestore_ops.save(collection_name="users", data_model=new_user.model_dump(), document_id=uid)
    if not saved_user_id:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not create user")

    logger.info(f"Registered user {uid} with role {new_user.role}")
    return new_user


@router.get("/me", response_model=User)
async def read_users_me(token: str = Depends(get_bearer_token)):
    firestore_ops: FirestoreBaseModel = get_firestore_ops_instance()
    return require_user(firestore_ops, token)


@router.post("/logout")
async def logout(token: str = Depends(get_bearer_token)):
    # ID tokens stay valid until expiry; revoking refresh tokens stops new ones being minted.
    uid = authenticate(token)
    if not revoke_tokens(uid):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not revoke session")
    return {"message": "Logout successful. Please discard your token."}
