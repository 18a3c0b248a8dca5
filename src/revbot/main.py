"""FastAPI application entry point for the relay.

This module provides the FastAPI application that receives GitLab webhooks
and hands each delivery to the NotificationRelay in the background. The
webhook response never waits for notification delivery.

Endpoints:
- POST {gitlab.webhook_path or /}: GitLab webhook receiver
- GET /health: Liveness probe
- GET /metrics: Prometheus metrics
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import Response

from .config import RelaySettings, load_settings
from .gitlab.client import GitLabClient
from .metrics import RelayMetrics, generate_metrics_output, get_metrics
from .notifications.composer import NotificationComposer
from .notifications.enrichment import PipelineEnricher
from .relay import NotificationRelay
from .webex.client import WebexClient
from .webhook.decoder import WebhookDecoder

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _redact_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if value is None:
        return "<unset>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_configuration(settings: RelaySettings) -> None:
    """Log configuration values with secrets redacted."""
    logger.info("Relay configuration:")
    logger.info(f"  Listen Address: {settings.host}:{settings.port}")
    logger.info(f"  GitLab Hostname: {settings.gitlab.hostname}")
    logger.info(f"  GitLab Token: {_redact_secret(settings.gitlab.access_token)}")
    logger.info(f"  GitLab Webhook Path: {webhook_path(settings)}")
    logger.info(f"  Webex API URL: {settings.webex.api_url}")
    logger.info(f"  Webex Token: {_redact_secret(settings.webex.access_token)}")
    logger.info(f"  Webex Whoami Link: {settings.webex.whoami_link}")
    logger.info(f"  Request Timeout Seconds: {settings.request_timeout_seconds}")

    # TODO: verify X-Gitlab-Token against gitlab.webhook_token once the
    # expected rejection behaviour for GitLab retries is decided
    if settings.gitlab.webhook_token:
        logger.warning(
            "gitlab.webhook_token is set but webhook tokens are not verified"
        )


def webhook_path(settings: RelaySettings) -> str:
    """Return the path the GitLab webhook endpoint is served on."""
    return settings.gitlab.webhook_path or "/"


def build_relay(
    settings: RelaySettings,
    gitlab_client: GitLabClient,
    webex_client: WebexClient,
    metrics: Optional[RelayMetrics] = None,
) -> NotificationRelay:
    """Wire all relay dependencies into a NotificationRelay.

    Args:
        settings: Validated relay settings.
        gitlab_client: Authenticated GitLab API client.
        webex_client: Authenticated Webex client.
        metrics: Metrics sink shared by the relay and the enricher.

    Returns:
        Fully wired NotificationRelay.
    """
    timeout = settings.request_timeout_seconds
    return NotificationRelay(
        decoder=WebhookDecoder(),
        enricher=PipelineEnricher(
            api=gitlab_client,
            timeout_seconds=timeout,
            metrics=metrics,
        ),
        composer=NotificationComposer(),
        chat=webex_client,
        send_timeout_seconds=timeout,
        metrics=metrics,
    )


def create_app(
    settings: Optional[RelaySettings] = None,
    relay: Optional[NotificationRelay] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Relay settings. Loaded from the default config file and
                  the environment when omitted.
        relay: Pre-built relay. Built from settings during startup when
               omitted.

    Returns:
        The FastAPI application.
    """
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup and shutdown.

        Handles:
        - Logging configuration (with secrets redacted)
        - Client construction and relay wiring
        - Draining in-flight deliveries and closing clients on shutdown
        """
        logger.info("Relay starting up...")
        _log_configuration(settings)

        gitlab_client: Optional[GitLabClient] = None
        webex_client: Optional[WebexClient] = None

        if app.state.relay is None:
            gitlab_client = GitLabClient(
                hostname=settings.gitlab.hostname,
                access_token=settings.gitlab.access_token,
                timeout=settings.request_timeout_seconds,
            )
            webex_client = WebexClient(
                access_token=settings.webex.access_token,
                whoami_link=settings.webex.whoami_link,
                messages_url=settings.webex.api_url,
                timeout=settings.request_timeout_seconds,
            )
            app.state.relay = build_relay(
                settings, gitlab_client, webex_client, metrics=get_metrics()
            )

        logger.info("Relay started successfully")

        yield

        logger.info("Relay shutting down...")

        await app.state.relay.wait_idle()
        if gitlab_client is not None:
            await gitlab_client.close()
        if webex_client is not None:
            await webex_client.close()

        logger.info("Relay shutdown complete")

    app = FastAPI(
        title="revbot",
        description="GitLab merge request and pipeline notifications for Webex",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.relay = relay

    @app.get("/health")
    async def health():
        """Liveness probe endpoint."""
        return {"status": "healthy"}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_metrics_output(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    @app.post(webhook_path(settings))
    async def gitlab_webhook(request: Request):
        """GitLab webhook receiver endpoint.

        Reads the body and hands it to the relay without waiting for the
        outcome. GitLab always receives a successful acknowledgment, even
        for payloads the relay cannot decode.

        Returns:
            dict: Acknowledgment of webhook receipt.
        """
        body = await request.body()
        logger.debug(
            "Received webhook",
            extra={
                "gitlab_event": request.headers.get("x-gitlab-event"),
                "body_length": len(body),
            },
        )

        request.app.state.relay.dispatch(body)

        return {"status": "accepted"}

    return app
