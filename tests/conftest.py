"""Pytest configuration for all tests."""

import copy

import pytest


# Payloads as GitLab sends them, trimmed to the fields the relay reads plus
# a few it ignores.
MERGE_REQUEST_PAYLOAD = {
    "object_kind": "merge_request",
    "event_type": "merge_request",
    "object_attributes": {
        "created_at": "2021-09-06 10:54:57 -0500",
        "description": "",
        "id": 289144,
        "iid": 3,
        "merge_error": None,
        "merge_status": "unchecked",
        "merge_when_pipeline_succeeds": False,
        "state": "opened",
        "state_id": 1,
        "url": "https://gitlab.com/hds-/mr-test/-/merge_requests/3",
        "title": "Fail pipeline",
    },
    "project": {
        "id": 17898,
        "name": "mr-test",
        "path_with_namespace": "hds-/mr-test",
        "web_url": "https://gitlab.com/hds-/mr-test",
    },
    "user": {
        "email": "hds@example.com",
        "id": 1069,
        "name": "Hayden Stainsby",
        "username": "hds-",
    },
}

PIPELINE_PAYLOAD = {
    "object_kind": "pipeline",
    "object_attributes": {
        "finished_at": None,
        "id": 4038106,
        "ref": "fail-pipeline",
        "status": "running",
    },
    "project": {
        "id": 17898,
        "name": "mr-test",
        "path_with_namespace": "hds-/mr-test",
        "web_url": "https://gitlab.com/hds-/mr-test",
    },
    "user": {
        "email": "hds@example.com",
        "id": 1069,
        "name": "Hayden Stainsby",
        "username": "hds-",
    },
}


@pytest.fixture
def merge_request_payload():
    """A merge request hook without assignee changes."""
    return copy.deepcopy(MERGE_REQUEST_PAYLOAD)


@pytest.fixture
def pipeline_payload():
    """A running pipeline hook without a linked merge request."""
    return copy.deepcopy(PIPELINE_PAYLOAD)
