"""Webex messages API client.

Sends direct messages to people by email address through the Webex
messages endpoint. Message bodies are markdown.

Source:
- src/revbot/config.py (webex.access_token, webex.api_url, webex.whoami_link)
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)

DEFAULT_MESSAGES_URL = "https://api.ciscospark.com/v1/messages"


class WebexMessage(BaseModel):
    """Request body for `POST /v1/messages`."""

    model_config = ConfigDict(populate_by_name=True)

    to_person_email: str = Field(alias="toPersonEmail")
    markdown: str


class WebexAPIError(Exception):
    """Raised when sending a Webex message fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response, if any.
        response_body: Response body from the Webex API, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class WebexClient:
    """Async Webex client for direct messages.

    When a whoami link is configured it is appended to every message so
    recipients can find out which bot is talking to them.

    Attributes:
        access_token: Webex bot access token.
        messages_url: Messages endpoint URL.
        whoami_link: Optional link appended to every message body.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        access_token: str,
        whoami_link: Optional[str] = None,
        messages_url: str = DEFAULT_MESSAGES_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.access_token = access_token
        self.whoami_link = whoami_link
        self.messages_url = messages_url
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = http_client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "User-Agent": "revbot/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "WebexClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def build_message(self, recipient_email: str, body: str) -> WebexMessage:
        """Build the message payload, appending the whoami link if set.

        Args:
            recipient_email: Email address of the recipient.
            body: Markdown message body.

        Returns:
            The WebexMessage to send.
        """
        if self.whoami_link:
            body = f"{body}\n\n[Who am I?]({self.whoami_link})"
        return WebexMessage(to_person_email=recipient_email, markdown=body)

    async def send_message(self, recipient_email: str, body: str) -> None:
        """Send a direct message to a person by email.

        Args:
            recipient_email: Email address of the recipient.
            body: Markdown message body.

        Raises:
            WebexAPIError: If the request fails or Webex rejects it.
        """
        message = self.build_message(recipient_email, body)
        logger.debug("Sending message: %r", message)

        try:
            response = await self.client.post(
                self.messages_url,
                json=message.model_dump(by_alias=True),
                headers=self._default_headers(),
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise WebexAPIError(
                message=f"Request timed out after {self.timeout}s: {e}",
            ) from e
        except httpx.RequestError as e:
            raise WebexAPIError(message=f"Request failed: {e}") from e

        if response.status_code >= 400:
            raise WebexAPIError(
                message=f"Webex API error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        try:
            logger.debug("Response body: %s", response.json())
        except ValueError as e:
            logger.warning("Couldn't parse body to JSON: %s", e)
