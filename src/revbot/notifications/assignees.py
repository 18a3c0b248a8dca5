"""Assignee change detection for merge request hooks."""

from typing import List, Optional

from revbot.webhook.models import AssigneeChanges, User, user_key


def get_new_assignees(changes: Optional[AssigneeChanges]) -> List[User]:
    """Return users assigned by this change.

    A user is new when their id appears in `current` but not in `previous`.
    The result keeps the order of `current`.

    Args:
        changes: The assignee change record, or None when the hook has none.

    Returns:
        Newly added assignees; empty when there is no change record.
    """
    if changes is None:
        return []

    previous_keys = {user_key(user) for user in changes.previous}
    return [user for user in changes.current if user_key(user) not in previous_keys]
