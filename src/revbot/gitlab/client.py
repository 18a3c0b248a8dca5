"""GitLab API client for pipeline enrichment.

This module provides an async wrapper around the GitLab REST API (v4) for:
- Fetching pipeline details (canonical web URL)
- Fetching merge request details (title, web URL)

Pipeline webhooks omit both of these, so the relay looks them up before
composing a pipeline notification. The client is read-only and does not
retry: a failed lookup drops the notification.

Source:
- src/revbot/gitlab/models.py (PipelineDetail, MergeRequestDetail)
- src/revbot/config.py (gitlab.hostname, gitlab.access_token)
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from revbot.gitlab.models import MergeRequestDetail, PipelineDetail


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class GitLabAPIError(Exception):
    """Raised when a GitLab API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response, if any.
        response_body: Response body from GitLab API, if any.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class GitLabClient:
    """Async GitLab API client.

    Authenticates with a bearer token against `https://{hostname}/api/v4`.
    Every failure mode (transport error, timeout, HTTP error status, or a
    response body that does not match the expected model) surfaces as a
    GitLabAPIError.

    Attributes:
        hostname: GitLab host name, e.g. "gitlab.com".
        access_token: Personal or project access token.
        timeout: Request timeout in seconds.

    Example:
        >>> client = GitLabClient(hostname="gitlab.com", access_token="glpat-xxx")
        >>> async with client:
        ...     pipeline = await client.get_pipeline_detail(17898, 4038106)
    """

    def __init__(
        self,
        hostname: str,
        access_token: str,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the GitLab client.

        Args:
            hostname: GitLab host name, with or without a scheme.
            access_token: Token used for bearer authentication.
            timeout: Request timeout in seconds.
            http_client: Optional pre-built httpx client. Used by tests to
                         inject a mock transport.
        """
        self.hostname = hostname
        self.access_token = access_token
        self.timeout = timeout
        self.base_url = self._api_base_url(hostname)
        self._client: Optional[httpx.AsyncClient] = http_client

    @staticmethod
    def _api_base_url(hostname: str) -> str:
        host = hostname.strip().rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return f"{host}/api/v4"

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary.

        Returns:
            The httpx AsyncClient instance.
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers=self._default_headers(),
                timeout=self.timeout,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "User-Agent": "revbot/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitLabClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: Any,
        exc_val: Any,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit - close the client."""
        await self.close()

    async def _get(self, path: str, model: Type[ModelT]) -> ModelT:
        """Make a GET request and validate the response against a model.

        Args:
            path: API path below /api/v4 (e.g., /projects/1/pipelines/2).
            model: Pydantic model the JSON response must match.

        Returns:
            The validated response model.

        Raises:
            GitLabAPIError: If the request fails or the response is malformed.
        """
        url = f"{self.base_url}{path}"

        try:
            response = await self.client.get(
                url,
                headers=self._default_headers(),
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.warning(
                "GitLab API request timed out",
                extra={"path": path, "timeout": self.timeout},
            )
            raise GitLabAPIError(
                message=f"Request timed out after {self.timeout}s: {e}",
                request_url=url,
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                "GitLab API request error",
                extra={"path": path, "error": str(e)},
            )
            raise GitLabAPIError(
                message=f"Request failed: {e}",
                request_url=url,
            ) from e

        if response.status_code >= 400:
            error_body = response.text
            logger.warning(
                "GitLab API error",
                extra={
                    "status_code": response.status_code,
                    "path": path,
                    "response_body": error_body[:500],
                },
            )
            raise GitLabAPIError(
                message=f"GitLab API error: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
                request_url=url,
            )

        try:
            result = model.model_validate_json(response.content)
        except ValidationError as e:
            raise GitLabAPIError(
                message=f"Malformed {model.__name__} response: {e.error_count()} errors",
                status_code=response.status_code,
                response_body=response.text,
                request_url=url,
            ) from e

        logger.debug("GitLab API response for %s: %r", path, result)
        return result

    async def get_pipeline_detail(
        self,
        project_id: int,
        pipeline_id: int,
    ) -> PipelineDetail:
        """Get pipeline details.

        Args:
            project_id: Numeric project ID.
            pipeline_id: Numeric pipeline ID.

        Returns:
            PipelineDetail with ref, status and web URL.

        Raises:
            GitLabAPIError: If the request fails.
        """
        path = f"/projects/{project_id}/pipelines/{pipeline_id}"
        return await self._get(path, PipelineDetail)

    async def get_merge_request_detail(
        self,
        project_id: int,
        merge_request_iid: int,
    ) -> MergeRequestDetail:
        """Get merge request details.

        Args:
            project_id: Numeric project ID.
            merge_request_iid: Project-scoped merge request number.

        Returns:
            MergeRequestDetail with title, web URL and metadata.

        Raises:
            GitLabAPIError: If the request fails.
        """
        path = f"/projects/{project_id}/merge_requests/{merge_request_iid}"
        return await self._get(path, MergeRequestDetail)
