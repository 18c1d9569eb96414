from __future__ import annotations

import logging
import os
from typing import Optional

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore

from .errors import StorageError

logger = logging.getLogger(__name__)

PAYLOAD_FIELD = "payload"

_FIRESTORE_ERRORS = (gcloud_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


class FirestoreRecipeStorage:
    """Keeps the recipe entry as a single Firestore document."""

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipebook",
        document_id: str = "recipes",
        client: Optional[firestore.Client] = None,
    ) -> None:
        self._project = project
        self._collection_name = collection_name
        self._document_id = document_id

        self._firestore_client = client if client is not None else firestore.Client(project=project)
        self._document = self._firestore_client.collection(collection_name).document(document_id)

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipebook")
        document_id = os.environ.get("RECIPES_DOCUMENT", "recipes")
        return cls(project=project, collection_name=collection_name, document_id=document_id)

    def read(self) -> Optional[str]:
        try:
            snapshot = self._document.get()
        except _FIRESTORE_ERRORS as exc:
            raise StorageError(f"Could not read Firestore document: {exc}") from exc

        if not snapshot.exists:
            return None

        data = snapshot.to_dict() or {}
        payload = data.get(PAYLOAD_FIELD)
        if payload is None:
            return None
        if not isinstance(payload, str):
            # Surfaces as malformed JSON to the store, which falls back to empty.
            return repr(payload)
        return payload

    def write(self, payload: str) -> None:
        try:
            self._document.set({PAYLOAD_FIELD: payload, "updated_at": firestore.SERVER_TIMESTAMP})
        except _FIRESTORE_ERRORS as exc:
            logger.error(
                "Failed to write recipes to Firestore %s/%s: %s",
                self._collection_name,
                self._document_id,
                exc,
            )
            raise StorageError(f"Could not write Firestore document: {exc}") from exc


__all__ = ["FirestoreRecipeStorage"]
