"""Notification composition for merge request and pipeline events.

Two rules, selected by event kind:
- merge_request: one "added as assignee" message per newly added assignee
- pipeline: one status message to the user who triggered the pipeline,
  for success, failed and running pipelines only

Message bodies are Webex markdown. Composition is pure; "nothing to send"
is an empty list.
"""

from typing import Dict, List, Optional

from revbot.notifications.assignees import get_new_assignees
from revbot.notifications.enrichment import PipelineEnrichment
from revbot.notifications.models import Notification
from revbot.webhook.models import (
    MergeRequestEvent,
    PipelineEvent,
    StatusState,
    User,
)


STATUS_MARKERS: Dict[StatusState, str] = {
    StatusState.SUCCESS: "🌞 Success",
    StatusState.FAILED: "⛈️ Failed",
    StatusState.RUNNING: "⏳ Running",
}

ASSIGNEE_MARKER = "🤩 Added as assignee"


def status_marker(status: StatusState) -> Optional[str]:
    """Return the message marker for a pipeline status.

    Returns:
        The marker text, or None when the status is not worth a message.
    """
    return STATUS_MARKERS.get(status)


def build_assignee_body(event: MergeRequestEvent) -> str:
    merge_request = event.merge_request
    project = event.project
    return (
        f"[!{merge_request.iid} {merge_request.title}]({merge_request.url}) "
        f"([{project.name}]({project.web_url})) "
        f"by @{event.user.username} "
        f"{ASSIGNEE_MARKER}"
    )


def build_pipeline_body(
    event: PipelineEvent,
    enrichment: PipelineEnrichment,
    marker: str,
) -> str:
    merge_request = enrichment.merge_request
    project = event.project
    return (
        f"[!{merge_request.iid} {merge_request.title}]({merge_request.web_url}) "
        f"([{project.name}]({project.web_url})) "
        f"[#{event.pipeline.id}]({enrichment.pipeline.web_url}) "
        f"{marker}"
    )


class NotificationComposer:
    """Turns decoded events into notifications."""

    def compose_merge_request(self, event: MergeRequestEvent) -> List[Notification]:
        """Compose one notification per newly added assignee.

        Args:
            event: The decoded merge request event.

        Returns:
            Notifications in the order the assignees appear in the change.
        """
        new_assignees: List[User] = get_new_assignees(event.assignee_changes)
        if not new_assignees:
            return []

        body = build_assignee_body(event)
        return [
            Notification(recipient_email=assignee.email, body=body)
            for assignee in new_assignees
        ]

    def compose_pipeline(
        self,
        event: PipelineEvent,
        enrichment: Optional[PipelineEnrichment],
    ) -> List[Notification]:
        """Compose the status notification for a pipeline event.

        Args:
            event: The decoded pipeline event.
            enrichment: Result of PipelineEnricher.enrich, None on failure.

        Returns:
            A single notification to the triggering user, or an empty list
            when the status is not notable or enrichment did not complete.
        """
        marker = status_marker(event.pipeline.status)
        if marker is None or enrichment is None:
            return []

        body = build_pipeline_body(event, enrichment, marker)
        return [Notification(recipient_email=event.user.email, body=body)]
