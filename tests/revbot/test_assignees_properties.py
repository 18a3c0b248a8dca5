"""Property-based tests for assignee change detection.

Verifies that get_new_assignees returns exactly the users present in
`current` but not in `previous`, compared by user id, in `current` order.
"""

from hypothesis import HealthCheck, given, settings, strategies as st

from revbot.notifications.assignees import get_new_assignees
from revbot.webhook.models import AssigneeChanges, User


# =============================================================================
# Hypothesis Strategies
# =============================================================================


@st.composite
def gitlab_user(draw: st.DrawFn, user_id: int) -> User:
    """Generate a user with the given id and arbitrary other fields."""
    username = draw(
        st.text(
            alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789-_"),
            min_size=1,
            max_size=20,
        )
    )
    return User(
        id=user_id,
        email=f"{username}@example.com",
        name=draw(
            st.text(
                alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz ABCDEFGHIJ"),
                max_size=30,
            )
        ),
        username=username,
    )


@st.composite
def user_list(draw: st.DrawFn, max_size: int = 10) -> list:
    """Generate users with distinct ids from a small id pool."""
    ids = draw(
        st.lists(
            st.integers(min_value=1, max_value=30),
            unique=True,
            max_size=max_size,
        )
    )
    return [draw(gitlab_user(user_id)) for user_id in ids]


# =============================================================================
# Property Tests
# =============================================================================


class TestNewAssignees:
    """Property tests for assignee diffing."""

    @given(current=user_list(), previous=user_list())
    @settings(
        max_examples=200,
        deadline=5000,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_result_is_current_minus_previous_by_id(self, current, previous) -> None:
        changes = AssigneeChanges(current=current, previous=previous)

        result = get_new_assignees(changes)

        previous_ids = {user.id for user in previous}
        expected = [user for user in current if user.id not in previous_ids]
        assert [user.id for user in result] == [user.id for user in expected]

    @given(current=user_list(), previous=user_list())
    @settings(
        max_examples=200,
        deadline=5000,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_result_preserves_current_order(self, current, previous) -> None:
        changes = AssigneeChanges(current=current, previous=previous)

        result = get_new_assignees(changes)

        positions = [current.index(user) for user in result]
        assert positions == sorted(positions)

    @given(users=user_list(), data=st.data())
    @settings(
        max_examples=100,
        deadline=5000,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_same_ids_yield_empty_diff(self, users, data) -> None:
        """Identity is the id: other fields may differ between snapshots."""
        previous = [data.draw(gitlab_user(user.id)) for user in users]
        changes = AssigneeChanges(current=users, previous=previous)

        assert get_new_assignees(changes) == []

    @given(users=user_list())
    @settings(
        max_examples=100,
        deadline=5000,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_empty_previous_returns_all_current(self, users) -> None:
        changes = AssigneeChanges(current=users, previous=[])

        assert get_new_assignees(changes) == users


class TestNewAssigneesExamples:
    """Example-based checks for assignee diffing."""

    def test_missing_change_record_yields_empty(self) -> None:
        assert get_new_assignees(None) == []

    def test_single_added_assignee(self) -> None:
        a = User(id=1, email="a@x", name="A", username="a")
        b = User(id=2, email="b@x", name="B", username="b")
        changes = AssigneeChanges(current=[a, b], previous=[a])

        assert get_new_assignees(changes) == [b]

    def test_renamed_user_is_not_new(self) -> None:
        before = User(id=7, email="old@x", name="Old", username="old")
        after = User(id=7, email="new@x", name="New", username="new")
        changes = AssigneeChanges(current=[after], previous=[before])

        assert get_new_assignees(changes) == []
