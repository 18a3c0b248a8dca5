"""Unit tests for the PipelineEnricher.

Verifies the lookup order, the skip rule for pipelines without a merge
request, and that every lookup failure degrades to None.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import CollectorRegistry

from revbot.gitlab.client import GitLabAPIError
from revbot.gitlab.models import MergeRequestDetail, PipelineDetail, UserBasic
from revbot.metrics import RelayMetrics
from revbot.notifications.enrichment import PipelineEnricher, SourceControlAPI
from revbot.webhook.models import (
    MergeRequestAttributes,
    MergeStatus,
    PipelineAttributes,
    PipelineEvent,
    Project,
    StatusState,
    User,
)


def run_async(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _make_event(
    merge_request_iid: Optional[int] = 3,
    status: StatusState = StatusState.RUNNING,
    pipeline_id: int = 9,
) -> PipelineEvent:
    merge_request = None
    if merge_request_iid is not None:
        merge_request = MergeRequestAttributes(
            iid=merge_request_iid,
            merge_status=MergeStatus.CAN_BE_MERGED,
            title="Fix bug",
            url=f"https://x/mr/{merge_request_iid}",
        )
    return PipelineEvent(
        pipeline=PipelineAttributes(id=pipeline_id, ref="main", status=status),
        merge_request=merge_request,
        project=Project(
            id=42, name="widgets", path_with_namespace="acme/widgets", web_url="https://x"
        ),
        user=User(id=1, email="dev@x", name="Dev", username="dev"),
    )


def _make_pipeline_detail(web_url: str = "https://x/p/9") -> PipelineDetail:
    return PipelineDetail(ref="main", status=StatusState.RUNNING, web_url=web_url)


def _make_merge_request_detail(
    iid: int = 3, title: str = "Fix bug", web_url: str = "https://x/mr/3"
) -> MergeRequestDetail:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return MergeRequestDetail(
        id=1000 + iid,
        iid=iid,
        title=title,
        created_at=now,
        updated_at=now,
        author=UserBasic(id=1, username="dev", web_url="https://x/dev"),
        merge_status="can_be_merged",
        work_in_progress=False,
        web_url=web_url,
    )


@pytest.fixture
def api():
    api = AsyncMock()
    api.get_pipeline_detail.return_value = _make_pipeline_detail()
    api.get_merge_request_detail.return_value = _make_merge_request_detail()
    return api


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_successful_enrichment_returns_both_details(api):
    enricher = PipelineEnricher(api=api)

    result = run_async(enricher.enrich(_make_event()))

    assert result is not None
    assert result.pipeline.web_url == "https://x/p/9"
    assert result.merge_request.title == "Fix bug"
    api.get_pipeline_detail.assert_awaited_once_with(42, 9)
    api.get_merge_request_detail.assert_awaited_once_with(42, 3)


def test_no_linked_merge_request_skips_all_lookups(api):
    enricher = PipelineEnricher(api=api)

    result = run_async(enricher.enrich(_make_event(merge_request_iid=None)))

    assert result is None
    api.get_pipeline_detail.assert_not_called()
    api.get_merge_request_detail.assert_not_called()


def test_pipeline_lookup_failure_skips_merge_request_lookup(api):
    api.get_pipeline_detail.side_effect = GitLabAPIError("connection refused")
    enricher = PipelineEnricher(api=api)

    result = run_async(enricher.enrich(_make_event()))

    assert result is None
    api.get_merge_request_detail.assert_not_called()


def test_merge_request_lookup_failure_returns_none(api):
    api.get_merge_request_detail.side_effect = GitLabAPIError(
        "GitLab API error: 404", status_code=404
    )
    enricher = PipelineEnricher(api=api)

    result = run_async(enricher.enrich(_make_event()))

    assert result is None
    api.get_pipeline_detail.assert_awaited_once()


def test_unexpected_exception_is_contained(api):
    api.get_pipeline_detail.side_effect = RuntimeError("boom")
    enricher = PipelineEnricher(api=api)

    assert run_async(enricher.enrich(_make_event())) is None


def test_lookup_raising_on_call_is_contained():
    api = MagicMock()
    api.get_pipeline_detail.side_effect = TypeError("unexpected argument")
    enricher = PipelineEnricher(api=api)

    result = run_async(enricher.enrich(_make_event()))

    assert result is None
    api.get_merge_request_detail.assert_not_called()


def test_slow_lookup_times_out(api):
    async def slow_lookup(project_id, pipeline_id):
        await asyncio.sleep(5)
        return _make_pipeline_detail()

    api.get_pipeline_detail.side_effect = slow_lookup
    enricher = PipelineEnricher(api=api, timeout_seconds=0.05)

    result = run_async(enricher.enrich(_make_event()))

    assert result is None
    api.get_merge_request_detail.assert_not_called()


def test_lookup_failures_are_counted(api):
    registry = CollectorRegistry()
    metrics = RelayMetrics(registry=registry)
    api.get_merge_request_detail.side_effect = GitLabAPIError("nope")
    enricher = PipelineEnricher(api=api, metrics=metrics)

    run_async(enricher.enrich(_make_event()))

    assert registry.get_sample_value(
        "revbot_lookup_failures_total", {"lookup": "merge_request"}
    ) == 1.0
    assert registry.get_sample_value(
        "revbot_lookup_failures_total", {"lookup": "pipeline"}
    ) == 0.0


def test_gitlab_client_satisfies_protocol():
    from revbot.gitlab.client import GitLabClient

    client = GitLabClient(hostname="gitlab.example.com", access_token="token")

    assert isinstance(client, SourceControlAPI)
