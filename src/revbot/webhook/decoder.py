"""GitLab webhook decoder for the relay.

This module provides the WebhookDecoder class for turning raw GitLab webhook
bodies into typed events. The payload's `object_kind` field selects the
event model; anything that does not validate against the selected model is
rejected as a whole.

Supported kinds:
- merge_request: Merge request hook (assignee changes are inspected)
- pipeline: Pipeline hook (status changes are inspected)

Webhook tokens are not checked here. GitLab's `X-Gitlab-Token` header is
accepted but ignored, see DESIGN.md.
"""

import logging
from typing import Union

from pydantic import TypeAdapter, ValidationError

from .models import MergeRequestEvent, PipelineEvent, WebhookEvent

logger = logging.getLogger(__name__)

_webhook_adapter: TypeAdapter = TypeAdapter(WebhookEvent)


class UnsupportedEventError(Exception):
    """Raised when a webhook body is not a supported GitLab event.

    Covers bodies that are not UTF-8 JSON, carry a missing or unknown
    `object_kind`, or do not match the shape of the selected event kind.
    Field-level validation detail is not kept.
    """

    def __init__(self, message: str = "Unsupported webhook"):
        self.message = message
        super().__init__(message)


def decode_webhook(body: bytes) -> Union[MergeRequestEvent, PipelineEvent]:
    """Decode a raw webhook body into a merge request or pipeline event.

    Args:
        body: The raw request body as received from GitLab.

    Returns:
        The decoded MergeRequestEvent or PipelineEvent.

    Raises:
        UnsupportedEventError: If the body does not decode to a supported
            event. No partially populated event is ever returned.
    """
    try:
        # Wire payloads only ever use the GitLab key names
        return _webhook_adapter.validate_json(body, by_alias=True, by_name=False)
    except ValidationError as e:
        logger.debug(
            "Webhook body failed validation",
            extra={"error_count": e.error_count(), "errors": str(e)[:500]},
        )
        raise UnsupportedEventError() from None
    except ValueError as e:
        logger.debug("Webhook body could not be read: %s", e)
        raise UnsupportedEventError() from None


class WebhookDecoder:
    """Decoder for GitLab webhook bodies.

    Wraps decode_webhook and logs a one-line summary of every accepted
    event. Designed to be fast; it runs inside the per-delivery background
    task, never on the request path.
    """

    def decode(self, body: bytes) -> Union[MergeRequestEvent, PipelineEvent]:
        """Decode a webhook body, logging what was received.

        Args:
            body: The raw request body.

        Returns:
            The decoded event.

        Raises:
            UnsupportedEventError: If the body is not a supported event.
        """
        event = decode_webhook(body)

        if isinstance(event, MergeRequestEvent):
            logger.info(
                "Decoded merge request event: project=%s, iid=%s",
                event.project.path_with_namespace,
                event.merge_request.iid,
            )
        else:
            logger.info(
                "Decoded pipeline event: project=%s, pipeline=%s, status=%s",
                event.project.path_with_namespace,
                event.pipeline.id,
                event.pipeline.status.value,
            )

        return event
