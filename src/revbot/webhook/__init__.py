"""GitLab webhook handling for the relay.

This module decodes GitLab webhook bodies into typed events, specifically:
- merge_request - Merge request created or updated
- pipeline - Pipeline status changed

Signature/token validation is not performed; see DESIGN.md.
"""

from .decoder import UnsupportedEventError, WebhookDecoder, decode_webhook
from .models import (
    AssigneeChanges,
    Changes,
    MergeRequestAttributes,
    MergeRequestEvent,
    MergeStatus,
    PipelineAttributes,
    PipelineEvent,
    Project,
    StatusState,
    User,
    WebhookEvent,
    user_key,
)

__all__ = [
    "AssigneeChanges",
    "Changes",
    "MergeRequestAttributes",
    "MergeRequestEvent",
    "MergeStatus",
    "PipelineAttributes",
    "PipelineEvent",
    "Project",
    "StatusState",
    "UnsupportedEventError",
    "User",
    "WebhookDecoder",
    "WebhookEvent",
    "decode_webhook",
    "user_key",
]
