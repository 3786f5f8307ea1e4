"""Siigo REST API client for API communication."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from mcp_server_siigo.models import SiigoToken
from mcp_server_siigo.operations import Operation

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth"


class SiigoConfig(BaseModel):
    """Configuration for Siigo connection."""

    username: str = Field(..., min_length=1, description="Siigo API username")
    access_key: str = Field(..., min_length=1, description="Siigo API access key")
    partner_id: str = Field(
        ...,
        pattern=r"^[A-Za-z0-9]{3,100}$",
        description="Partner-Id header identifying this integration",
    )
    base_url: str = Field(default="https://api.siigo.com", description="Siigo API base URL")
    timeout: float = Field(120, gt=0, description="Request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class SiigoError(Exception):
    """Base class for Siigo client failures."""


class AuthenticationError(SiigoError):
    """Credential exchange failed."""


class RequestError(SiigoError):
    """A request failed without a structured error body."""


class TransportError(RequestError):
    """Network-level failure: timeout, DNS, connection reset."""


@dataclass(frozen=True)
class Credential:
    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SiigoClient:
    """Client for interacting with Siigo via REST API."""

    def __init__(
        self,
        config: SiigoConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize Siigo client with configuration."""
        self.config = config
        self.credential: Optional[Credential] = None
        self._clock = clock or _now
        self._auth_lock = asyncio.Lock()

        self.client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Partner-Id": config.partner_id,
                "User-Agent": "mcp-server-siigo/1.0.0",
            },
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def authenticate(self) -> None:
        """Make sure a non-expired bearer token is set on the HTTP client.

        The cached credential is reused while the current time is strictly
        before its expiry; otherwise a new one is exchanged for the configured
        username and access key. Failures raise AuthenticationError and leave
        the cache untouched, so the next call tries again.
        """
        async with self._auth_lock:
            if self.credential is not None and self.credential.is_valid(self._clock()):
                return

            try:
                response = await self.client.post(
                    AUTH_PATH,
                    json={
                        "username": self.config.username,
                        "access_key": self.config.access_key,
                    },
                )
            except httpx.HTTPError as e:
                raise AuthenticationError(f"Authentication failed: {e}") from e

            if not response.is_success:
                raise AuthenticationError(
                    f"Authentication failed: HTTP {response.status_code}: {response.text}"
                )

            try:
                token = SiigoToken.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                raise AuthenticationError(f"Authentication failed: malformed token response: {e}") from e

            issued_at = self._clock()
            self.credential = Credential(
                token=token.access_token,
                expires_at=issued_at + timedelta(seconds=token.expires_in),
            )
            self.client.headers["Authorization"] = f"Bearer {token.access_token}"
            logger.info("Obtained Siigo access token valid until %s", self.credential.expires_at.isoformat())

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make an authenticated request to the Siigo API.

        Upstream error responses that carry a JSON body are returned as-is so
        that their error codes reach the caller.
        """
        await self.authenticate()

        path = path if path.startswith("/") else f"/{path}"
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        try:
            response = await self.client.request(
                method=method,
                url=path,
                params=params or None,
                json=body,
                headers=headers,
            )
        except httpx.TransportError as e:
            raise TransportError(f"API request failed: {e}") from e
        except httpx.HTTPError as e:
            raise RequestError(f"API request failed: {e}") from e

        logger.debug("%s %s -> %s", method, path, response.status_code)

        if not response.content:
            if response.is_success:
                return {}
            raise RequestError(f"API request failed: HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError:
            detail = f"HTTP {response.status_code}: {response.text}"
            raise RequestError(f"API request failed: {detail}")

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a GET request."""
        return await self.request("GET", path, params=params)

    async def post(self, path: str, data: Optional[Any] = None, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a POST request."""
        return await self.request("POST", path, body=data, params=params)

    async def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Make a DELETE request."""
        return await self.request("DELETE", path, params=params)

    async def execute(self, operation: Operation, arguments: Dict[str, Any]) -> Any:
        """Run one catalog operation with already validated arguments."""
        if operation.handler:
            declared = operation.input_schema.get("properties", {})
            return await getattr(self, operation.handler)(
                **{key: value for key, value in arguments.items() if key in declared}
            )

        path = operation.path.format(
            **{key: quote(str(arguments[key]), safe="") for key in operation.path_params}
        )
        params = {key: arguments.get(key) for key in operation.query}
        body = operation.request_body(arguments)

        return await self.request(operation.method, path, body=body, params=params)

    @staticmethod
    def _narrow(items: List[Any], field: str, needle: str) -> List[Dict[str, Any]]:
        """Keep items whose field contains needle, case-insensitively."""
        needle = needle.lower()
        return [
            item for item in items
            if isinstance(item, dict) and item.get(field) is not None and needle in str(item[field]).lower()
        ]

    @staticmethod
    def _customer_name_matches(customer: Any, needle: str) -> bool:
        if not isinstance(customer, dict):
            return False
        names = customer.get("name") or []
        if isinstance(names, str):
            names = [names]
        if any(needle in str(part).lower() for part in names):
            return True
        commercial_name = customer.get("commercial_name")
        return bool(commercial_name) and needle in str(commercial_name).lower()

    @staticmethod
    def _with_results(response: Dict[str, Any], results: List[Dict[str, Any]]) -> Dict[str, Any]:
        # total_results describes the filtered subset of this page only.
        filtered = dict(response)
        filtered["results"] = results
        pagination = response.get("pagination")
        if isinstance(pagination, dict):
            filtered["pagination"] = {**pagination, "total_results": len(results)}
        else:
            filtered.pop("pagination", None)
        return filtered

    async def search_products(
        self,
        code: Optional[str] = None,
        name: Optional[str] = None,
        reference: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Any:
        """Fetch one page of products and filter it by code, name and reference."""
        response = await self.get("/v1/products", params={"page": page, "page_size": page_size})

        if not (code or name or reference):
            return response
        if not isinstance(response, dict) or not isinstance(response.get("results"), list):
            return response

        results = response["results"]
        if code:
            results = self._narrow(results, "code", code)
        if name:
            results = self._narrow(results, "name", name)
        if reference:
            results = self._narrow(results, "reference", reference)

        return self._with_results(response, results)

    async def search_customers(
        self,
        identification: Optional[str] = None,
        name: Optional[str] = None,
        type: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Any:
        """Fetch one page of customers and filter it by identification and name.

        A customer matches ``name`` when any element of its ``name`` list
        contains it, or failing that, when its ``commercial_name`` does.
        """
        response = await self.get(
            "/v1/customers",
            params={"page": page, "page_size": page_size, "type": type},
        )

        if not (identification or name):
            return response
        if not isinstance(response, dict) or not isinstance(response.get("results"), list):
            return response

        results = response["results"]
        if identification:
            results = self._narrow(results, "identification", identification)
        if name:
            needle = name.lower()
            results = [customer for customer in results if self._customer_name_matches(customer, needle)]

        return self._with_results(response, results)
