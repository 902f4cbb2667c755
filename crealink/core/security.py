from firebase_admin import auth as firebase_auth
from loguru import logger

from crealink.db.firebase_ops import FirebaseManager


def decode_access_token(token: str) -> str | None:
    """
    Verifies a Firebase ID token issued to the frontend.
    Returns the user's uid if the token is valid, else None.
    """
    if not token:
        return None

    # The Admin SDK app must exist before verifying
    FirebaseManager()
    try:
        decoded = firebase_auth.verify_id_token(token)
    except Exception as e:
        logger.warning(f"Rejected ID token: {e}")
        return None
    return decoded.get("uid")


def revoke_tokens(uid: str) -> bool:
    """Revoke all refresh tokens of a user so no new ID tokens can be minted."""
    FirebaseManager()
    try:
        firebase_auth.revoke_refresh_tokens(uid)
    except Exception as e:
        logger.error(f"Could not revoke tokens for user {uid}: {e}")
        return False
    return True
