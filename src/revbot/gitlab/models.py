"""GitLab REST API response models.

Only the fields the relay reads, or may want to read, are declared; the
rest of GitLab's response is ignored.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from revbot.webhook.models import StatusState


class UserBasic(BaseModel):
    """User summary as embedded in merge request responses."""

    id: int
    username: str
    web_url: str


class PipelineDetail(BaseModel):
    """Response of `GET /projects/:id/pipelines/:pipeline_id`."""

    ref: str
    status: StatusState
    web_url: str


class MergeRequestDetail(BaseModel):
    """Response of `GET /projects/:id/merge_requests/:merge_request_iid`."""

    id: int
    iid: int
    title: str
    created_at: datetime
    updated_at: datetime
    author: UserBasic
    assignees: Optional[List[UserBasic]] = None
    reviewers: Optional[List[UserBasic]] = None
    merge_status: str
    work_in_progress: bool = False
    web_url: str
    pipeline: Optional[PipelineDetail] = None
