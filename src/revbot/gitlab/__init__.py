"""GitLab API client for pipeline enrichment.

This module provides a read-only wrapper around the GitLab REST API for
looking up pipeline and merge request details that pipeline webhooks omit.
"""

from revbot.gitlab.client import GitLabAPIError, GitLabClient
from revbot.gitlab.models import MergeRequestDetail, PipelineDetail, UserBasic

__all__ = [
    "GitLabAPIError",
    "GitLabClient",
    "MergeRequestDetail",
    "PipelineDetail",
    "UserBasic",
]
