"""Pipeline enrichment through the GitLab API.

Pipeline hooks carry neither the pipeline's web URL nor the linked merge
request's title and web URL. The PipelineEnricher looks both up, in order:

1. pipeline detail (for its web URL)
2. merge request detail (for its title and web URL)

Pipelines without a linked merge request are not enriched at all. Any
failed or timed-out lookup abandons enrichment; the failure is logged and
counted, never raised, and no lookup is retried.

Source:
- src/revbot/gitlab/client.py (GitLabClient, the production SourceControlAPI)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, TypeVar, runtime_checkable

from revbot.gitlab.models import MergeRequestDetail, PipelineDetail
from revbot.metrics import RelayMetrics
from revbot.webhook.models import PipelineEvent

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class SourceControlAPI(Protocol):
    """Protocol for the read-only source control lookups enrichment needs.

    The production implementation is GitLabClient; tests provide fakes.
    """

    async def get_pipeline_detail(
        self, project_id: int, pipeline_id: int
    ) -> PipelineDetail:
        """Fetch pipeline detail.

        Raises:
            Exception: If the lookup fails for any reason.
        """
        ...

    async def get_merge_request_detail(
        self, project_id: int, merge_request_iid: int
    ) -> MergeRequestDetail:
        """Fetch merge request detail.

        Raises:
            Exception: If the lookup fails for any reason.
        """
        ...


@dataclass(frozen=True)
class PipelineEnrichment:
    """Details gathered for a pipeline notification.

    Attributes:
        pipeline: Pipeline detail; supplies the pipeline web URL.
        merge_request: Linked merge request detail; supplies title and URL.
    """

    pipeline: PipelineDetail
    merge_request: MergeRequestDetail


class PipelineEnricher:
    """Fetches the pipeline and merge request details a pipeline hook omits.

    Attributes:
        api: Source control API used for lookups.
        timeout_seconds: Upper bound on each individual lookup.
        metrics: Optional metrics sink for lookup failures.
    """

    def __init__(
        self,
        api: SourceControlAPI,
        timeout_seconds: float = 10.0,
        metrics: Optional[RelayMetrics] = None,
    ):
        self.api = api
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics

    async def enrich(self, event: PipelineEvent) -> Optional[PipelineEnrichment]:
        """Look up the details needed to notify about a pipeline event.

        Args:
            event: The decoded pipeline event.

        Returns:
            PipelineEnrichment when both lookups succeed. None when the
            pipeline has no linked merge request or a lookup fails.
        """
        merge_request_iid = event.linked_merge_request_iid
        if merge_request_iid is None:
            # Pipelines unrelated to a merge request are not reported
            logger.debug(
                "Skipping enrichment for pipeline without merge request",
                extra={"pipeline_id": event.pipeline.id},
            )
            return None

        project_id = event.project.id

        pipeline = await self._lookup(
            "pipeline",
            lambda: self.api.get_pipeline_detail(project_id, event.pipeline.id),
            project_id=project_id,
            ref_id=event.pipeline.id,
        )
        if pipeline is None:
            return None

        merge_request = await self._lookup(
            "merge_request",
            lambda: self.api.get_merge_request_detail(project_id, merge_request_iid),
            project_id=project_id,
            ref_id=merge_request_iid,
        )
        if merge_request is None:
            return None

        return PipelineEnrichment(pipeline=pipeline, merge_request=merge_request)

    async def _lookup(
        self,
        lookup: str,
        call: Callable[[], Awaitable[T]],
        project_id: int,
        ref_id: int,
    ) -> Optional[T]:
        """Run one lookup under the timeout, mapping failure to None."""
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Lookup timed out, dropping pipeline notification",
                extra={
                    "lookup": lookup,
                    "project_id": project_id,
                    "ref_id": ref_id,
                    "timeout": self.timeout_seconds,
                },
            )
        except Exception as e:
            logger.warning(
                "Lookup failed, dropping pipeline notification: %s",
                e,
                extra={
                    "lookup": lookup,
                    "project_id": project_id,
                    "ref_id": ref_id,
                    "error": str(e),
                },
            )

        if self.metrics is not None:
            self.metrics.record_lookup_failure(lookup)
        return None
