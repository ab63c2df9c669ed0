"""Firestore REST adapter — implements the RemoteClientStore port.

Talks to the Firestore v1 REST API with an anonymous Firebase identity:

- sign-in through the Identity Toolkit ``accounts:signUp`` endpoint,
- id-token refresh through the Secure Token endpoint,
- writes through ``documents:commit`` so ``createdAt``/``updatedAt`` are
  stamped with the server's ``REQUEST_TIME``,
- reads through collection listing and document get.

Live listeners are emulated with PollingSubscription tasks.
"""

import logging
import re
import secrets
import string
import time
from typing import Any

import httpx

from cockpit.application.interfaces import (
    CollectionCallback,
    DocumentCallback,
    RemoteClientStore,
    Subscription,
)
from cockpit.domain.entities import ProjectRecord
from cockpit.domain.exceptions import RemoteAuthError, RemoteStoreError
from cockpit.infrastructure.record_codec import fields_to_document, record_from_document, record_to_document
from cockpit.infrastructure.remote.firestore_values import decode_fields, encode_fields, parse_timestamp
from cockpit.infrastructure.remote.polling_subscription import PollingSubscription

logger = logging.getLogger(__name__)

_DOC_ID_ALPHABET = string.ascii_letters + string.digits
_DOC_ID_LENGTH = 20
_SIMPLE_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")
# Refresh the id token this many seconds before it expires
_TOKEN_SKEW = 60.0
_PAGE_SIZE = 300


def new_document_id() -> str:
    """Random 20-character id, the same shape Firestore auto-ids use."""
    return "".join(secrets.choice(_DOC_ID_ALPHABET) for _ in range(_DOC_ID_LENGTH))


def _field_path(name: str) -> str:
    if _SIMPLE_FIELD_RE.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("`", "\\`")
    return f"`{escaped}`"


def _server_time(field: str) -> dict[str, str]:
    return {"fieldPath": field, "setToServerValue": "REQUEST_TIME"}


class FirestoreRestClient(RemoteClientStore):
    """Infrastructure adapter for the shared ``clients`` collection."""

    def __init__(
        self,
        api_key: str,
        project_id: str,
        app_id: str,
        *,
        firestore_base_url: str = "https://firestore.googleapis.com/v1",
        identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1",
        secure_token_url: str = "https://securetoken.googleapis.com/v1",
        poll_interval: float = 3.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._project_id = project_id
        self._app_id = app_id
        self._firestore_base_url = firestore_base_url.rstrip("/")
        self._identity_toolkit_url = identity_toolkit_url.rstrip("/")
        self._secure_token_url = secure_token_url.rstrip("/")
        self._poll_interval = poll_interval
        self._http_client = http_client
        self._owns_client = http_client is None

        self._id_token: str | None = None
        self._refresh_token: str | None = None
        self._expires_at = 0.0
        self.user_id: str | None = None

    # ── Paths ───────────────────────────────────────────────────────

    @property
    def collection_path(self) -> str:
        return f"artifacts/{self._app_id}/public/data/clients"

    @property
    def _database_path(self) -> str:
        return f"projects/{self._project_id}/databases/(default)"

    def _document_name(self, record_id: str) -> str:
        return f"{self._database_path}/documents/{self.collection_path}/{record_id}"

    def _documents_url(self, suffix: str = "") -> str:
        return f"{self._firestore_base_url}/{self._database_path}/documents{suffix}"

    # ── HTTP plumbing ───────────────────────────────────────────────

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=30.0)
        return self._http_client

    async def close(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = await self._auth_headers()
        try:
            return await self._get_client().request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteStoreError(503, f"Connection failed: {exc}") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error", {})
        except ValueError:
            return response.text
        if isinstance(error, dict):
            return str(error.get("message") or response.text)
        return str(error)

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise RemoteStoreError(response.status_code, self._error_message(response))

    # ── Authentication ──────────────────────────────────────────────

    async def sign_in_anonymously(self) -> str:
        url = f"{self._identity_toolkit_url}/accounts:signUp"
        try:
            response = await self._get_client().post(
                url, params={"key": self._api_key}, json={"returnSecureToken": True}
            )
        except httpx.HTTPError as exc:
            raise RemoteAuthError(503, f"Connection failed: {exc}") from exc
        if response.status_code != 200:
            raise RemoteAuthError(response.status_code, self._error_message(response))

        data = response.json()
        self._store_token(data.get("idToken"), data.get("refreshToken"), data.get("expiresIn"))
        self.user_id = data.get("localId", "")
        logger.info("Signed in anonymously (uid=%s)", self.user_id)
        return self.user_id

    async def _refresh(self) -> None:
        url = f"{self._secure_token_url}/token"
        try:
            response = await self._get_client().post(
                url,
                params={"key": self._api_key},
                data={"grant_type": "refresh_token", "refresh_token": self._refresh_token or ""},
            )
        except httpx.HTTPError as exc:
            raise RemoteAuthError(503, f"Connection failed: {exc}") from exc
        if response.status_code != 200:
            raise RemoteAuthError(response.status_code, self._error_message(response))

        data = response.json()
        self._store_token(data.get("id_token"), data.get("refresh_token"), data.get("expires_in"))
        logger.debug("Refreshed remote id token")

    def _store_token(self, id_token: str | None, refresh_token: str | None, expires_in: Any) -> None:
        if not id_token:
            raise RemoteAuthError(500, "Identity response carried no token")
        self._id_token = id_token
        self._refresh_token = refresh_token or self._refresh_token
        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError):
            lifetime = 3600.0
        self._expires_at = time.monotonic() + lifetime

    async def _auth_headers(self) -> dict[str, str]:
        if self._id_token is None:
            raise RemoteAuthError(401, "Not signed in")
        if time.monotonic() >= self._expires_at - _TOKEN_SKEW:
            await self._refresh()
        return {"Authorization": f"Bearer {self._id_token}"}

    # ── Documents ───────────────────────────────────────────────────

    def _to_entity(self, document: dict[str, Any]) -> ProjectRecord:
        record_id = document["name"].rsplit("/", 1)[-1]
        data = decode_fields(document.get("fields", {}))
        update_time = document.get("updateTime")
        if not data.get("updatedAt") and update_time:
            data["updatedAt"] = parse_timestamp(update_time)
        return record_from_document(record_id, data)

    async def _commit(self, writes: list[dict[str, Any]]) -> None:
        response = await self._request("POST", self._documents_url(":commit"), json={"writes": writes})
        self._raise_for_status(response)

    async def add(self, record: ProjectRecord) -> str:
        record_id = new_document_id()
        await self._commit([
            {
                "update": {
                    "name": self._document_name(record_id),
                    "fields": encode_fields(record_to_document(record)),
                },
                "currentDocument": {"exists": False},
                "updateTransforms": [_server_time("createdAt"), _server_time("updatedAt")],
            }
        ])
        logger.info("Remote document created: %s", record_id)
        return record_id

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        document = fields_to_document(fields)
        document.pop("updatedAt", None)
        await self._commit([
            {
                "update": {
                    "name": self._document_name(record_id),
                    "fields": encode_fields(document),
                },
                "updateMask": {"fieldPaths": [_field_path(k) for k in document]},
                "currentDocument": {"exists": True},
                "updateTransforms": [_server_time("updatedAt")],
            }
        ])
        logger.debug("Remote document updated: %s (%s)", record_id, ", ".join(document))

    async def _get_raw(self, record_id: str) -> dict[str, Any] | None:
        response = await self._request("GET", self._documents_url(f"/{self.collection_path}/{record_id}"))
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return response.json()

    async def get(self, record_id: str) -> ProjectRecord | None:
        document = await self._get_raw(record_id)
        return self._to_entity(document) if document else None

    async def _list_raw(self) -> list[dict[str, Any]]:
        documents: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"pageSize": _PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            response = await self._request(
                "GET", self._documents_url(f"/{self.collection_path}"), params=params
            )
            self._raise_for_status(response)
            data = response.json()
            documents.extend(data.get("documents", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return documents

    async def list_all(self) -> list[ProjectRecord]:
        return [self._to_entity(d) for d in await self._list_raw()]

    # ── Subscriptions ───────────────────────────────────────────────

    async def subscribe_collection(self, callback: CollectionCallback) -> Subscription:
        async def fetch() -> tuple[Any, list[ProjectRecord]]:
            documents = await self._list_raw()
            fingerprint = tuple(sorted((d["name"], d.get("updateTime", "")) for d in documents))
            return fingerprint, [self._to_entity(d) for d in documents]

        subscription = PollingSubscription(fetch, callback, self._poll_interval, name="clients")
        return await subscription.start()

    async def subscribe_document(self, record_id: str, callback: DocumentCallback) -> Subscription:
        async def fetch() -> tuple[Any, ProjectRecord | None]:
            document = await self._get_raw(record_id)
            if document is None:
                return None, None
            return document.get("updateTime", ""), self._to_entity(document)

        subscription = PollingSubscription(fetch, callback, self._poll_interval, name=f"clients/{record_id}")
        return await subscription.start()
