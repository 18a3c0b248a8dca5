"""GitLab webhook event models.

This module defines the data models for the GitLab webhook events the relay
understands: merge request hooks and pipeline hooks. The two event models
form a closed union discriminated by the payload's `object_kind` field.

GitLab Webhook Payload Structure (merge request event):
{
  "object_kind": "merge_request",
  "object_attributes": {
    "iid": 3,
    "title": "Fail pipeline",
    "url": "https://gitlab.com/hds-/mr-test/-/merge_requests/3",
    "merge_status": "unchecked",
    "action": "update"
  },
  "project": {"id": 17898, "name": "mr-test", ...},
  "user": {"id": 1069, "email": "...", "name": "...", "username": "hds-"},
  "changes": {"assignees": {"current": [...], "previous": [...]}}
}

The models use Pydantic for validation, consistent with the relay's
configuration approach in config.py. Unknown payload fields are ignored.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MergeStatus(str, Enum):
    """Mergeability state GitLab reports for a merge request.

    Carried on merge request events for completeness; the relay never
    branches on it.
    """

    UNCHECKED = "unchecked"
    CHECKING = "checking"
    CAN_BE_MERGED = "can_be_merged"
    CANNOT_BE_MERGED = "cannot_be_merged"
    CANNOT_BE_MERGED_RECHECK = "cannot_be_merged_recheck"
    CANNOT_BE_MERGED_RECHECKING = "cannot_be_merged_rechecking"


class StatusState(str, Enum):
    """Pipeline status values reported by GitLab.

    Only SUCCESS, FAILED and RUNNING produce notifications. Every other
    status is dropped without contacting the GitLab API.
    """

    CREATED = "created"
    WAITING_FOR_RESOURCE = "waiting_for_resource"
    PREPARING = "preparing"
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELED = "canceled"
    SKIPPED = "skipped"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class User(BaseModel):
    """A GitLab user as embedded in webhook payloads.

    Two records describe the same user when their `id` matches, whatever
    their other fields say. Comparisons that need identity go through
    `user_key` rather than model equality.
    """

    id: int
    email: str
    name: str
    username: str


def user_key(user: User) -> int:
    """Return the identity key of a user."""
    return user.id


class Project(BaseModel):
    """The project block shared by all webhook kinds."""

    id: int
    name: str
    path_with_namespace: str
    web_url: str


class MergeRequestAttributes(BaseModel):
    """Merge request fields from `object_attributes` or `merge_request`."""

    action: Optional[str] = None
    iid: int
    merge_status: MergeStatus
    title: str
    url: str


class PipelineAttributes(BaseModel):
    """Pipeline fields from a pipeline hook's `object_attributes`."""

    id: int
    ref: str
    status: StatusState
    finished_at: Optional[str] = None


class AssigneeChanges(BaseModel):
    """Assignee lists before and after the change that fired the hook."""

    current: List[User]
    previous: List[User]


class Changes(BaseModel):
    """The `changes` block of a merge request hook.

    Only assignee changes are modelled; other changed attributes are
    ignored.
    """

    assignees: Optional[AssigneeChanges] = None


class MergeRequestEvent(BaseModel):
    """Parsed GitLab merge request hook.

    Attributes:
        object_kind: Discriminator, always "merge_request".
        merge_request: The merge request (`object_attributes` in the payload).
        project: The project the merge request belongs to.
        user: The user who performed the action.
        assignees: Assignees after the change, when GitLab sends them.
        changes: Changed attributes, when GitLab sends them.
    """

    model_config = ConfigDict(populate_by_name=True)

    object_kind: Literal["merge_request"] = "merge_request"
    merge_request: MergeRequestAttributes = Field(alias="object_attributes")
    project: Project
    user: User
    assignees: Optional[List[User]] = None
    changes: Optional[Changes] = None

    @property
    def assignee_changes(self) -> Optional[AssigneeChanges]:
        """Return the assignee change record, if the hook carries one."""
        if self.changes is None:
            return None
        return self.changes.assignees


class PipelineEvent(BaseModel):
    """Parsed GitLab pipeline hook.

    Attributes:
        object_kind: Discriminator, always "pipeline".
        pipeline: The pipeline (`object_attributes` in the payload).
        merge_request: The merge request the pipeline ran for, if any.
        project: The project the pipeline belongs to.
        user: The user who triggered the pipeline.
    """

    model_config = ConfigDict(populate_by_name=True)

    object_kind: Literal["pipeline"] = "pipeline"
    pipeline: PipelineAttributes = Field(alias="object_attributes")
    project: Project
    user: User
    merge_request: Optional[MergeRequestAttributes] = None

    @property
    def linked_merge_request_iid(self) -> Optional[int]:
        """Return the iid of the linked merge request, if any."""
        if self.merge_request is None:
            return None
        return self.merge_request.iid


WebhookEvent = Annotated[
    Union[MergeRequestEvent, PipelineEvent],
    Field(discriminator="object_kind"),
]
