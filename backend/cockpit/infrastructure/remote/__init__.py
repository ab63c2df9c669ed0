"""Remote (cloud) document store infrastructure package."""

from .firestore_client import FirestoreRestClient, new_document_id
from .polling_subscription import PollingSubscription

__all__ = ["FirestoreRestClient", "PollingSubscription", "new_document_id"]
