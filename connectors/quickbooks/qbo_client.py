"""QuickBooks Online HTTP Client.

Low-level HTTP client for the QuickBooks Online v3 accounting API.
Handles authentication headers, query paging, retries, idempotency keys
and error handling.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from connectors.quickbooks.qbo_auth import QBOSession
from core.observability.logging import get_logger
from core.observability.metrics import get_metrics

logger = get_logger(__name__)

SANDBOX_BASE_URL = "https://sandbox-quickbooks.api.intuit.com"
PRODUCTION_BASE_URL = "https://quickbooks.api.intuit.com"

# QuickBooks caps a single query page at 1000 rows
MAX_PAGE_SIZE = 1000


class QBOApiError(Exception):
    """Base exception for QuickBooks API errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class QBOAuthenticationError(QBOApiError):
    """Authentication failed (401/403) or no valid session."""
    pass


class QBONotFoundError(QBOApiError):
    """Resource not found (404)."""
    pass


class QBORateLimitError(QBOApiError):
    """Rate limit exceeded (429)."""
    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, 429)
        self.retry_after = retry_after


class QBOValidationError(QBOApiError):
    """Validation error from QuickBooks (400)."""
    pass


def fault_message(response_text: str) -> str:
    """Pull the human-readable message out of a QuickBooks Fault body."""
    try:
        body = json.loads(response_text)
    except (TypeError, ValueError):
        return response_text
    if not isinstance(body, dict):
        return response_text

    fault = body.get("Fault") or body.get("fault") or {}
    errors = fault.get("Error") or fault.get("error") or []
    messages = []
    for error in errors:
        message = error.get("Message") or error.get("message") or ""
        detail = error.get("Detail") or error.get("detail") or ""
        if detail and detail != message:
            message = f"{message}: {detail}" if message else detail
        if message:
            messages.append(message)
    return "; ".join(messages) or response_text


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 60.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class QBOApiConfig:
    """Configuration for the QuickBooks API client."""
    environment: str = "sandbox"
    base_url: Optional[str] = None
    minor_version: Optional[str] = "65"
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    timeout_seconds: int = 30

    def get_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        if self.environment == "production":
            return PRODUCTION_BASE_URL
        return SANDBOX_BASE_URL

    def get_company_url(self, realm_id: str) -> str:
        """URL prefix for company-scoped calls."""
        return f"{self.get_base_url()}/v3/company/{realm_id}"


class QBOApiClient:
    """HTTP client for the QuickBooks Online API.

    Provides:
    - Authenticated API calls
    - Paged catalog queries
    - Error handling and retries
    - Idempotent document creation (requestid)

    Usage:
        client = QBOApiClient(session, api_config)
        await client.connect()
        accounts = await client.query_all("Account")
        created = await client.create("journalentry", payload, request_id="...")
    """

    def __init__(self, session: QBOSession, api_config: QBOApiConfig):
        self.session = session
        self.api_config = api_config
        self._http: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> bool:
        """Open the HTTP session; True when the auth session is valid."""
        if self._http is None:
            self._http = aiohttp.ClientSession()
        return await self.session.ensure_valid_token()

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._http:
            await self._http.close()
            self._http = None

    @property
    def is_connected(self) -> bool:
        return self._http is not None

    def _get_headers(self) -> Dict[str, str]:
        auth_header = self.session.authorization_header
        if not auth_header:
            raise QBOAuthenticationError("Not authenticated with QuickBooks")

        return {
            "Authorization": auth_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _build_url(self, endpoint: str) -> str:
        if not self.session.realm_id:
            raise QBOAuthenticationError("No QuickBooks company (realm) selected")
        return f"{self.api_config.get_company_url(self.session.realm_id)}/{endpoint}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Make an authenticated API request with automatic retries.

        Raises:
            QBOAuthenticationError: Authentication failed
            QBONotFoundError: Resource not found
            QBORateLimitError: Rate limit exceeded
            QBOValidationError: Validation error
            QBOApiError: Other API errors
        """
        if not self._http:
            raise QBOApiError("Not connected. Call connect() first.")

        if not await self.session.ensure_valid_token():
            raise QBOAuthenticationError("QuickBooks session is not valid")

        url = self._build_url(endpoint)
        params = dict(params or {})
        if self.api_config.minor_version:
            params.setdefault("minorversion", self.api_config.minor_version)

        retry_config = self.api_config.retry_config
        timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)
        last_error: Optional[Exception] = None

        for attempt in range(retry_config.max_retries + 1):
            try:
                async with self._http.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    params=params,
                    json=data,
                    timeout=timeout,
                ) as response:
                    response_text = await response.text()

                    # Success
                    if response.status < 400:
                        return json.loads(response_text) if response_text else {}

                    if response.status in (401, 403):
                        raise QBOAuthenticationError(
                            f"Authentication failed: {fault_message(response_text)}",
                            response.status,
                            response_text,
                        )

                    if response.status == 404:
                        raise QBONotFoundError(
                            f"Resource not found: {endpoint}",
                            response.status,
                            response_text,
                        )

                    if response.status == 429:
                        retry_after = int(response.headers.get("Retry-After", 60))
                        if attempt < retry_config.max_retries:
                            wait = min(retry_after, retry_config.max_delay)
                            logger.warning(f"Rate limited, waiting {wait}s...")
                            get_metrics().record_request_retry()
                            await asyncio.sleep(wait)
                            continue
                        raise QBORateLimitError("Rate limit exceeded", retry_after)

                    if response.status == 400:
                        raise QBOValidationError(
                            fault_message(response_text),
                            response.status,
                            response_text,
                        )

                    # Retry on server errors
                    if response.status in retry_config.retry_on_status:
                        if attempt < retry_config.max_retries:
                            delay = retry_config.get_delay(attempt)
                            logger.warning(
                                f"Request failed with {response.status}, "
                                f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                            )
                            get_metrics().record_request_retry()
                            await asyncio.sleep(delay)
                            continue

                    # Non-retryable error
                    raise QBOApiError(
                        f"API error {response.status}: {fault_message(response_text)}",
                        response.status,
                        response_text,
                    )

            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = e
                if attempt < retry_config.max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"Request failed with {type(e).__name__}: {e}, "
                        f"retrying in {delay:.1f}s"
                    )
                    get_metrics().record_request_retry()
                    await asyncio.sleep(delay)
                    continue
                raise QBOApiError(
                    f"Request failed after {retry_config.max_retries} retries: {e}"
                ) from e

        raise QBOApiError(f"Request failed: {last_error}")

    async def query(self, statement: str) -> Dict[str, Any]:
        """Run a query statement; returns the QueryResponse object."""
        response = await self._request("GET", "query", params={"query": statement})
        return response.get("QueryResponse", {})

    async def query_all(
        self,
        entity: str,
        page_size: int = MAX_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Every row of an entity, paging with STARTPOSITION.

        Args:
            entity: QuickBooks entity name (e.g. "Account", "Vendor")
            page_size: Rows per page (at most 1000)
        """
        page_size = min(page_size, MAX_PAGE_SIZE)
        all_results: List[Dict[str, Any]] = []
        start = 1

        while True:
            statement = f"SELECT * FROM {entity} STARTPOSITION {start} MAXRESULTS {page_size}"
            page = (await self.query(statement)).get(entity, [])

            if not page:
                break

            all_results.extend(page)

            if len(page) < page_size:
                break

            start += page_size

        return all_results

    async def create(
        self,
        entity: str,
        data: Dict[str, Any],
        request_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an entity.

        A `request_id` makes retries idempotent: QuickBooks returns the
        original result for a repeated requestid instead of creating twice.
        """
        params = {"requestid": request_id} if request_id else None
        return await self._request("POST", entity.lower(), params=params, data=data)
