"""Unit tests for the Webex messages client using an httpx mock transport."""

import asyncio
import json
from typing import Callable, List

import httpx
import pytest

from revbot.webex.client import (
    DEFAULT_MESSAGES_URL,
    WebexAPIError,
    WebexClient,
    WebexMessage,
)


def run_async(coro):
    return asyncio.run(coro)


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    whoami_link=None,
) -> WebexClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebexClient(
        access_token="webex-secret",
        whoami_link=whoami_link,
        http_client=http_client,
    )


def _recording_handler(
    requests: List[httpx.Request], status_code: int = 200
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json={"id": "msg-1"})

    return handler


class TestBuildMessage:
    def test_plain_body(self):
        client = WebexClient(access_token="t")

        message = client.build_message("a@x", "hello")

        assert message == WebexMessage(to_person_email="a@x", markdown="hello")

    def test_whoami_link_is_appended(self):
        client = WebexClient(access_token="t", whoami_link="https://wiki/revbot")

        message = client.build_message("a@x", "hello")

        assert message.markdown == "hello\n\n[Who am I?](https://wiki/revbot)"

    def test_wire_field_names(self):
        message = WebexMessage(to_person_email="a@x", markdown="hi")

        assert message.model_dump(by_alias=True) == {
            "toPersonEmail": "a@x",
            "markdown": "hi",
        }


class TestSendMessage:
    def test_posts_message_with_bearer_token(self):
        requests: List[httpx.Request] = []
        client = _make_client(_recording_handler(requests))

        run_async(client.send_message("b@x", "**hi**"))

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == DEFAULT_MESSAGES_URL
        assert request.headers["Authorization"] == "Bearer webex-secret"
        assert json.loads(request.content) == {
            "toPersonEmail": "b@x",
            "markdown": "**hi**",
        }

    def test_sent_body_includes_whoami_link(self):
        requests: List[httpx.Request] = []
        client = _make_client(
            _recording_handler(requests), whoami_link="https://wiki/revbot"
        )

        run_async(client.send_message("b@x", "hi"))

        body = json.loads(requests[0].content)
        assert body["markdown"].endswith("[Who am I?](https://wiki/revbot)")

    @pytest.mark.parametrize("status_code", [400, 401, 404, 429, 500, 503])
    def test_error_status_raises(self, status_code):
        client = _make_client(_recording_handler([], status_code=status_code))

        with pytest.raises(WebexAPIError) as exc_info:
            run_async(client.send_message("b@x", "hi"))

        assert exc_info.value.status_code == status_code

    def test_non_json_success_body_is_tolerated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"ok")

        client = _make_client(handler)

        run_async(client.send_message("b@x", "hi"))

    def test_connection_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)

        with pytest.raises(WebexAPIError, match="Request failed"):
            run_async(client.send_message("b@x", "hi"))

    def test_timeout_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = _make_client(handler)

        with pytest.raises(WebexAPIError, match="timed out"):
            run_async(client.send_message("b@x", "hi"))
