"""Relay connecting webhook decoding to notification delivery.

Receives raw webhook bodies and drives them through the relay:
decode → assignee diff / pipeline enrichment → compose → send.

Each delivery runs as an independent background task. Nothing that goes
wrong while handling one delivery escapes it: unsupported payloads, failed
lookups and failed sends are logged, counted and dropped.

Source:
- src/revbot/webhook/decoder.py (WebhookDecoder)
- src/revbot/notifications/enrichment.py (PipelineEnricher)
- src/revbot/notifications/composer.py (NotificationComposer)
- src/revbot/webex/client.py (WebexClient, the production ChatAPI)
"""

import asyncio
import logging
import time
from typing import List, Optional, Protocol, Set, runtime_checkable

from revbot.metrics import RelayMetrics
from revbot.notifications.composer import NotificationComposer, status_marker
from revbot.notifications.enrichment import PipelineEnricher
from revbot.notifications.models import Notification
from revbot.webhook.decoder import UnsupportedEventError, WebhookDecoder
from revbot.webhook.models import MergeRequestEvent, PipelineEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class ChatAPI(Protocol):
    """Protocol for the write-only chat delivery the relay needs.

    The production implementation is WebexClient; tests provide fakes.
    """

    async def send_message(self, recipient_email: str, body: str) -> None:
        """Send a direct message.

        Raises:
            Exception: If delivery fails for any reason.
        """
        ...


class NotificationRelay:
    """Relays GitLab webhook deliveries to chat notifications.

    Accepts all dependencies via constructor injection. process_webhook is
    a deterministic function of the body and the collaborators' answers;
    dispatch adds the fire-and-forget scheduling on top.

    Attributes:
        decoder: Webhook body decoder.
        enricher: Pipeline enricher backed by the GitLab API.
        composer: Notification composer.
        chat: Chat delivery client.
        send_timeout_seconds: Upper bound on each individual send.
        metrics: Optional metrics sink.
    """

    def __init__(
        self,
        decoder: WebhookDecoder,
        enricher: PipelineEnricher,
        composer: NotificationComposer,
        chat: ChatAPI,
        send_timeout_seconds: float = 10.0,
        metrics: Optional[RelayMetrics] = None,
    ):
        self.decoder = decoder
        self.enricher = enricher
        self.composer = composer
        self.chat = chat
        self.send_timeout_seconds = send_timeout_seconds
        self.metrics = metrics
        self._tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        """Number of deliveries currently being handled."""
        return len(self._tasks)

    async def process_webhook(self, body: bytes) -> List[Notification]:
        """Turn a webhook body into the notifications it calls for.

        Args:
            body: The raw request body.

        Returns:
            Notifications to send; empty for unsupported payloads, events
            that call for no message, and failed enrichment.
        """
        try:
            event = self.decoder.decode(body)
        except UnsupportedEventError as e:
            logger.warning("Error creating messages from webhook: %s", e)
            self._record_webhook("unsupported")
            return []

        if isinstance(event, MergeRequestEvent):
            self._record_webhook("merge_request")
            return self.composer.compose_merge_request(event)

        self._record_webhook("pipeline")
        return await self._process_pipeline(event)

    async def _process_pipeline(self, event: PipelineEvent) -> List[Notification]:
        if status_marker(event.pipeline.status) is None:
            logger.debug(
                "Ignoring pipeline status",
                extra={
                    "pipeline_id": event.pipeline.id,
                    "status": event.pipeline.status.value,
                },
            )
            return []

        enrichment = await self.enricher.enrich(event)
        return self.composer.compose_pipeline(event, enrichment)

    async def send_notifications(self, notifications: List[Notification]) -> int:
        """Send notifications one after another.

        A failed or timed-out send is logged and skipped; the remaining
        notifications are still sent.

        Args:
            notifications: Notifications to send, in order.

        Returns:
            The number of notifications delivered.
        """
        sent = 0
        for notification in notifications:
            recipient = notification.recipient_email
            try:
                await asyncio.wait_for(
                    self.chat.send_message(recipient, notification.body),
                    timeout=self.send_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Timed out sending message to %s",
                    recipient,
                    extra={"timeout": self.send_timeout_seconds},
                )
                self._record_send(success=False)
                continue
            except Exception as e:
                logger.warning("Error sending message to %s: %r", recipient, e)
                self._record_send(success=False)
                continue

            logger.info("Sent message to: %s", recipient)
            self._record_send(success=True)
            sent += 1

        return sent

    async def handle_delivery(self, body: bytes) -> None:
        """Process one webhook delivery end to end.

        Never raises: this runs as a detached task with nobody to catch.

        Args:
            body: The raw request body.
        """
        started = time.monotonic()
        try:
            notifications = await self.process_webhook(body)
            await self.send_notifications(notifications)
        except Exception:
            logger.exception("Unexpected error handling webhook delivery")
        finally:
            if self.metrics is not None:
                self.metrics.record_delivery_duration(time.monotonic() - started)

    def dispatch(self, body: bytes) -> asyncio.Task:
        """Start handling a delivery without waiting for it.

        Must be called from within a running event loop.

        Args:
            body: The raw request body.

        Returns:
            The background task handling the delivery.
        """
        task = asyncio.create_task(self.handle_delivery(body))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for all in-flight deliveries to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _record_webhook(self, kind: str) -> None:
        if self.metrics is not None:
            self.metrics.record_webhook(kind)

    def _record_send(self, success: bool) -> None:
        if self.metrics is None:
            return
        if success:
            self.metrics.record_notification_sent()
        else:
            self.metrics.record_notification_failed()
