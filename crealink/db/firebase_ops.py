import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import PermissionDenied
from loguru import logger
import json
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel as PydanticBaseModel # Alias Pydantic's BaseModel

from crealink.core.config import get_settings

Filter = Tuple[str, str, Any]


class StoreError(Exception):
    """Raised when a paginated read fails in a way the caller must handle."""


class StorePermissionDenied(StoreError):
    """The store refused the query for the current credentials."""


class InvalidCursor(StoreError):
    """The pagination cursor does not name an existing document."""


class Page(PydanticBaseModel):
    items: List[Any]
    next_cursor: Optional[str] = None
    has_more: bool = False


class FirebaseManager:
    """
    Firebase Firestore Manager for handling database operations
    """
    _instance = None
    _db = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(FirebaseManager, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if self._db is None:
            self.initialize_firebase()

    def initialize_firebase(self):
        """Initialize Firebase Admin SDK"""
        try:
            # Check if Firebase is already initialized
            try:
                app = firebase_admin.get_app()
                self._db = firestore.client(app)
                logger.debug("Using existing Firebase app")
                return
            except ValueError:
                pass # App doesn't exist, so we need to initialize it

            settings = get_settings()
            firebase_config_path = settings.resolve_path(settings.firebase_config_path)
            service_account_path = settings.resolve_path(settings.service_account_path)

            project_id = settings.firebase_project_id
            if not project_id and os.path.exists(firebase_config_path):
                with open(firebase_config_path, 'r') as f:
                    config = json.load(f)
                    project_id = config.get('projectId')
                    logger.info(f"Found Firebase project ID: {project_id} from {firebase_config_path}")

            options = {'projectId': project_id} if project_id else None

            if os.path.exists(service_account_path):
                cred = credentials.Certificate(str(service_account_path))
                firebase_admin.initialize_app(cred, options)
                logger.info(f"Firebase initialized with service account key from {service_account_path}")
            else:
                try:
                    cred = credentials.ApplicationDefault()
                    firebase_admin.initialize_app(cred, options)
                    logger.info("Firebase initialized with application default credentials")
                except Exception as e:
                    logger.error(f"Could not initialize Firebase with default credentials: {e}")
                    logger.error("Set CREALINK_SERVICE_ACCOUNT_PATH or GOOGLE_APPLICATION_CREDENTIALS.")
                    return

            self._db = firestore.client()
            logger.info("Firebase Firestore client initialized successfully")

        except Exception as e:
            logger.exception(f"Error initializing Firebase: {e}")

    def get_db(self):
        """Get Firestore database client"""
        if self._db is None:
            logger.warning("Firestore DB client accessed before initialization or initialization failed.")
        return self._db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirestoreBaseModel: # Renamed from BaseModel to avoid Pydantic conflict
    """
    Base model class for Firestore database operations, adapted for Pydantic.
    """

    def __init__(self):
        self.firebase_manager = FirebaseManager()
        self.db = self.firebase_manager.get_db()

    def _prepare_data_for_firestore(self, data_model: Any) -> Dict[str, Any]:
        """Converts Pydantic model or dict to Firestore-compatible dict."""
        if isinstance(data_model, PydanticBaseModel):
            return data_model.model_dump()
        if isinstance(data_model, dict):
            return data_model.copy()
        raise ValueError("Data must be a Pydantic model or a dictionary.")

    def _build_query(
        self,
        collection_name: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
    ):
        query_ref = self.db.collection(collection_name)
        for field, operator, value in filters:
            query_ref = query_ref.where(field, operator, value)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query_ref = query_ref.order_by(order_by, direction=direction)
        return query_ref

    @staticmethod
    def _parse(doc, pydantic_model: Optional[type[PydanticBaseModel]]) -> Any:
        data = {'id': doc.id, **doc.to_dict()}
        if pydantic_model:
            return pydantic_model(**data)
        return data

    def save(self, collection_name: str, data_model: Any, document_id: Optional[str] = None) -> Optional[str]:
        """Save Pydantic model or dictionary to Firestore"""
        if not self.db:
            logger.error("Database not initialized")
            return None

        data = self._prepare_data_for_firestore(data_model)

        now = _utcnow()
        data['updated_at'] = now
        if not document_id or not self.get(collection_name, document_id): # Set created_at only if new
            data.setdefault('created_at', now)

        try:
            if document_id:
                doc_ref = self.db.collection(collection_name).document(document_id)
                doc_ref.set(data, merge=True) # Use set with merge=True for creating or updating
                return document_id
            else:
                # add() returns a tuple (timestamp, DocumentReference)
                _, doc_ref = self.db.collection(collection_name).add(data)
                return doc_ref.id
        except Exception as e:
            logger.error(f"Error saving to Firestore collection '{collection_name}': {e}")
            return None

    def get(self, collection_name: str, document_id: str, pydantic_model: Optional[type[PydanticBaseModel]] = None) -> Optional[Any]:
        """Get document from Firestore by ID, optionally parsing into a Pydantic model."""
        if not self.db:
            logger.error("Database not initialized")
            return None

        try:
            doc = self.db.collection(collection_name).document(document_id).get()
            if not doc.exists:
                return None
            return self._parse(doc, pydantic_model)
        except Exception as e:
            logger.error(f"Error getting document '{document_id}' from Firestore collection '{collection_name}': {e}")
            return None

    def get_all(self, collection_name: str, limit: Optional[int] = None, pydantic_model: Optional[type[PydanticBaseModel]] = None) -> List[Any]:
        """Get all documents from a collection, optionally parsing into Pydantic models."""
        if not self.db:
            logger.error("Database not initialized")
            return []

        try:
            collection_ref = self.db.collection(collection_name)
            if limit:
                collection_ref = collection_ref.limit(limit)
            return [self._parse(doc, pydantic_model) for doc in collection_ref.stream()]
        except Exception as e:
            logger.error(f"Error getting documents from Firestore collection '{collection_name}': {e}")
            return []

    def query(self, collection_name: str, field: str, operator: str, value: Any, pydantic_model: Optional[type[PydanticBaseModel]] = None) -> List[Any]:
        """Query documents by field, optionally parsing into Pydantic models."""
        return self.query_many(collection_name, [(field, operator, value)], pydantic_model=pydantic_model)

    def query_many(
        self,
        collection_name: str,
        filters: Sequence[Filter],
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        pydantic_model: Optional[type[PydanticBaseModel]] = None,
    ) -> List[Any]:
        """Query documents matching every filter, optionally ordered and limited."""
        if not self.db:
            logger.error("Database not initialized")
            return []

        try:
            query_ref = self._build_query(collection_name, filters, order_by, descending)
            if limit:
                query_ref = query_ref.limit(limit)
            return [self._parse(doc, pydantic_model) for doc in query_ref.stream()]
        except Exception as e:
            logger.error(f"Error querying Firestore collection '{collection_name}': {e}")
            return []

    def paginate(
        self,
        collection_name: str,
        filters: Sequence[Filter],
        order_by: str,
        limit: int,
        start_after: Optional[str] = None,
        pydantic_model: Optional[type[PydanticBaseModel]] = None,
    ) -> Page:
        """
        Cursor pagination. `start_after` is the id of the last document of the
        previous page; the returned page starts strictly after it.
        """
        if not self.db:
            raise StoreError("Database not initialized")

        query_ref = self._build_query(collection_name, filters, order_by)
        try:
            if start_after:
                cursor_doc = self.db.collection(collection_name).document(start_after).get()
                if not cursor_doc.exists:
                    raise InvalidCursor(start_after)
                query_ref = query_ref.start_after(cursor_doc)
            docs = list(query_ref.limit(limit).stream())
        except StoreError:
            raise
        except PermissionDenied as e:
            logger.warning(f"Permission denied paginating '{collection_name}': {e}")
            raise StorePermissionDenied(collection_name) from e
        except Exception as e:
            logger.error(f"Error paginating Firestore collection '{collection_name}': {e}")
            raise StoreError(str(e)) from e

        items = [self._parse(doc, pydantic_model) for doc in docs]
        return Page(
            items=items,
            next_cursor=docs[-1].id if docs else None,
            has_more=len(docs) == limit,
        )

    def listen(
        self,
        collection_name: str,
        filters: Sequence[Filter],
        callback: Callable[[List[Dict[str, Any]]], None],
        order_by: Optional[str] = None,
        descending: bool = False,
    ):
        """
        Attach a live listener. `callback` receives the full result set on every
        change. Returns the watch handle; call `unsubscribe()` on it to stop.
        """
        if not self.db:
            raise StoreError("Database not initialized")

        query_ref = self._build_query(collection_name, filters, order_by, descending)

        def on_snapshot(docs, changes, read_time):
            callback([self._parse(doc, None) for doc in docs])

        return query_ref.on_snapshot(on_snapshot)

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]) -> bool:
        """Update specific fields in a document."""
        if not self.db:
            logger.error("Database not initialized")
            return False

        if not isinstance(updates, dict):
            logger.error("'updates' must be a dictionary.")
            return False

        try:
            updates_copy = updates.copy() # Avoid modifying the input dict
            updates_copy['updated_at'] = _utcnow()

            doc_ref = self.db.collection(collection_name).document(document_id)
            doc_ref.update(updates_copy)
            return True
        except Exception as e:
            logger.error(f"Error updating document '{document_id}' in Firestore collection '{collection_name}': {e}")
            return False

    def delete(self, collection_name: str, document_id: str) -> bool:
        """Delete a document from Firestore."""
        if not self.db:
            logger.error("Database not initialized")
            return False

        try:
            self.db.collection(collection_name).document(document_id).delete()
            return True
        except Exception as e:
            logger.error(f"Error deleting document '{document_id}' from Firestore collection '{collection_name}': {e}")
            return False


def get_firestore_ops_instance():
    return FirestoreBaseModel()
