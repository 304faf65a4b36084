"""
Feishu/Lark Bitable API client.

Provides async methods for:
- Obtaining a tenant access token
- Reading, creating, updating and deleting records
- Searching records with filters, sorting and page tokens
- Batch-creating records
- Reading table field metadata
- Downloading drive media (attachment images)

Every call acquires a fresh tenant access token and nothing is retried:
failures propagate to the caller as-is.
"""

from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx
from libs.bitable.errors import (
    RECORD_NOT_FOUND_CODE,
    ExternalApiError,
    ExternalAuthError,
    ExternalNotFoundError,
)
from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)

TOKEN_PATH = "/open-apis/auth/v3/tenant_access_token/internal"
BITABLE_PATH = "/open-apis/bitable/v1/apps/{app_token}"
MEDIA_DOWNLOAD_PATH = "/open-apis/drive/v1/medias/{file_token}/download"

_JSON_HEADERS = {"Content-Type": "application/json; charset=utf-8"}


def path_segment(value: str) -> str:
    """Percent-encode ``value`` as exactly one URL path segment.

    Raises:
        ValueError: empty, ``.`` or ``..``, which cannot stay a single segment
    """
    value = str(value)
    if value in ("", ".", ".."):
        raise ValueError(f"Invalid path segment: {value!r}")
    return quote(value, safe="")


def _outbound_headers(token: Optional[str] = None, json_body: bool = True) -> dict:
    headers = dict(_JSON_HEADERS) if json_body else {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    request_id = get_request_id()
    if request_id:
        headers["X-Request-ID"] = request_id
    return headers


class TokenProvider(Protocol):
    """Source of bearer tokens for the tabular service."""

    async def get_token(self) -> str: ...


class TenantTokenProvider:
    """Exchanges the app credentials for a tenant access token on every call.

    No caching: the token is a pure function of (app id, secret). A caching
    provider can implement the same protocol with its own expiry handling.
    """

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app_id = app_id
        self.app_secret = app_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def get_token(self) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}{TOKEN_PATH}",
                    headers=_outbound_headers(),
                    json={"app_id": self.app_id, "app_secret": self.app_secret},
                )
        except httpx.HTTPError as e:
            logger.error(f"Tenant token request failed: {e!r}")
            raise ExternalAuthError(
                f"Failed to get tenant_access_token: {type(e).__name__}"
            ) from e

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise ExternalAuthError(
                f"Failed to get tenant_access_token: HTTP {response.status_code}",
                code=response.status_code,
            )

        token = data.get("tenant_access_token")
        if data.get("code") != 0 or not token:
            logger.error(
                f"Tenant token request failed: code={data.get('code')}, msg={data.get('msg')}"
            )
            raise ExternalAuthError(
                f"Failed to get tenant_access_token: {data.get('msg')}",
                code=data.get("code"),
            )
        return token


class BitableClient:
    """Async client for one Bitable app (base)."""

    def __init__(
        self,
        app_token: str,
        token_provider: TokenProvider,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app_token = app_token
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "BitableClient":
        settings = settings or get_settings()
        provider = TenantTokenProvider(
            app_id=settings.FEISHU_APP_ID,
            app_secret=settings.FEISHU_APP_SECRET,
            base_url=settings.FEISHU_BASE_URL,
            timeout=settings.BITABLE_TIMEOUT_SECONDS,
            transport=transport,
        )
        return cls(
            app_token=settings.FEISHU_BASE_APP_TOKEN,
            token_provider=provider,
            base_url=settings.FEISHU_BASE_URL,
            timeout=settings.BITABLE_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        """Call the Bitable API and return the ``data`` member of the envelope.

        ``path`` is relative to the app, e.g. ``/tables/{table_id}/records``,
        with every caller-supplied segment already passed through
        ``path_segment``.

        Raises:
            ExternalAuthError: the access token could not be obtained
            ExternalNotFoundError: the record does not exist (code 254404)
            ExternalApiError: any other non-zero code or an unreadable body
        """
        token = await self.token_provider.get_token()
        app = path_segment(self.app_token)
        url = f"{self.base_url}{BITABLE_PATH.format(app_token=app)}{path}"

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.request(
                method,
                url,
                headers=_outbound_headers(token),
                params=params,
                json=body,
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error(
                f"Bitable API returned unreadable body: status={response.status_code}, path={path}"
            )
            raise ExternalApiError(
                f"Bitable API request failed: HTTP {response.status_code}",
                code=response.status_code,
            )

        code = data.get("code")
        if code != 0:
            message = data.get("msg") or "Unknown Bitable error"
            if code == RECORD_NOT_FOUND_CODE:
                raise ExternalNotFoundError(message, code=code)
            logger.error(
                f"Bitable API error: code={code}, msg={message}, path={path}, body={body}"
            )
            raise ExternalApiError(message, code=code)

        payload = data.get("data")
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _records_path(table_id: str, record_id: Optional[str] = None) -> str:
        path = f"/tables/{path_segment(table_id)}/records"
        if record_id is not None:
            path += f"/{path_segment(record_id)}"
        return path

    # =========================================================================
    # Record Methods
    # =========================================================================

    async def get_record(self, table_id: str, record_id: str) -> dict:
        data = await self.request("GET", self._records_path(table_id, record_id))
        return data.get("record") or {}

    async def create_record(self, table_id: str, fields: dict) -> dict:
        data = await self.request(
            "POST", self._records_path(table_id), body={"fields": fields}
        )
        return data.get("record") or {}

    async def update_record(self, table_id: str, record_id: str, fields: dict) -> dict:
        data = await self.request(
            "PUT",
            self._records_path(table_id, record_id),
            body={"fields": fields},
        )
        return data.get("record") or {}

    async def delete_record(self, table_id: str, record_id: str) -> bool:
        data = await self.request("DELETE", self._records_path(table_id, record_id))
        return bool(data.get("deleted"))

    async def search_records(
        self,
        table_id: str,
        body: dict,
        page_size: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> dict:
        """
        Search records.

        Args:
            table_id: Table to search
            body: ``{field_names, filter, sort}`` as accepted by the API
            page_size: Forwarded as the ``page_size`` query parameter
            page_token: Forwarded as the ``page_token`` query parameter

        Returns:
            ``{items, has_more, page_token, total}`` as returned by the API
        """
        params: dict[str, Any] = {}
        if page_size is not None:
            params["page_size"] = page_size
        if page_token:
            params["page_token"] = page_token

        return await self.request(
            "POST",
            f"{self._records_path(table_id)}/search",
            body=body,
            params=params or None,
        )

    async def batch_create_records(self, table_id: str, records: list[dict]) -> list[dict]:
        """Create several rows in one call. ``records`` is a list of field dicts."""
        data = await self.request(
            "POST",
            f"{self._records_path(table_id)}/batch_create",
            body={"records": [{"fields": fields} for fields in records]},
        )
        return data.get("records") or []

    # =========================================================================
    # Schema Methods
    # =========================================================================

    async def list_fields(self, table_id: str, page_size: int = 100) -> list[dict]:
        data = await self.request(
            "GET",
            f"/tables/{path_segment(table_id)}/fields",
            params={"page_size": page_size},
        )
        return data.get("items") or []

    # =========================================================================
    # Media Methods
    # =========================================================================

    async def download_media(self, file_token: str) -> httpx.Response:
        """Download an attachment. The raw response is returned unchecked."""
        path = MEDIA_DOWNLOAD_PATH.format(file_token=path_segment(file_token))
        token = await self.token_provider.get_token()

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.get(
                f"{self.base_url}{path}",
                headers=_outbound_headers(token, json_body=False),
            )
        return response


def get_bitable_client() -> BitableClient:
    """FastAPI dependency returning a client configured from settings."""
    return BitableClient.from_settings()
