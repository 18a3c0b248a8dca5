"""Notification building for the relay.

- get_new_assignees: Assignee change detection
- PipelineEnricher: GitLab lookups that fill in pipeline notifications
- NotificationComposer: Message composition per event kind
"""

from revbot.notifications.assignees import get_new_assignees
from revbot.notifications.composer import (
    STATUS_MARKERS,
    NotificationComposer,
    status_marker,
)
from revbot.notifications.enrichment import (
    PipelineEnricher,
    PipelineEnrichment,
    SourceControlAPI,
)
from revbot.notifications.models import Notification

__all__ = [
    "STATUS_MARKERS",
    "Notification",
    "NotificationComposer",
    "PipelineEnricher",
    "PipelineEnrichment",
    "SourceControlAPI",
    "get_new_assignees",
    "status_marker",
]
