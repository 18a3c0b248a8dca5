"""GitLab to Webex notification relay.

This package relays GitLab webhook events into Webex direct messages:
- GitLab webhook decoding (merge request and pipeline events)
- Assignee change detection for merge requests
- Pipeline enrichment through the GitLab REST API
- Notification composition and delivery through the Webex messages API
"""
