"""Tests for roost.server.sender: Response to ASGI messages."""

from typing import Any

from roost.http.cookies import SetCookie
from roost.http.response import Response
from roost.server.sender import send_response


async def _send(response: Response, method: str = "GET") -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []

    async def send(message: dict[str, Any]) -> None:
        messages.append(message)

    await send_response(response, send, method=method)
    return messages


class TestSendResponse:
    async def test_basic(self) -> None:
        start, body = await _send(Response("hello", status=201))

        assert start["type"] == "http.response.start"
        assert start["status"] == 201
        assert (b"content-type", b"text/html; charset=utf-8") in start["headers"]
        assert (b"content-length", b"5") in start["headers"]
        assert body == {"type": "http.response.body", "body": b"hello"}

    async def test_headers_lowercased(self) -> None:
        start, _ = await _send(Response("x").with_header("X-Custom", "Value"))
        assert (b"x-custom", b"Value") in start["headers"]

    async def test_user_content_length_replaced(self) -> None:
        start, _ = await _send(Response("abc").with_header("Content-Length", "999"))
        lengths = [v for k, v in start["headers"] if k == b"content-length"]
        assert lengths == [b"3"]

    async def test_cookies(self) -> None:
        response = Response("x").with_cookies((SetCookie("a", "1"), SetCookie("b", "2")))
        start, _ = await _send(response)
        cookies = [v for k, v in start["headers"] if k == b"set-cookie"]
        assert cookies == [b"a=1; Path=/", b"b=2; Path=/"]

    async def test_head_keeps_length(self) -> None:
        start, body = await _send(Response("hello"), method="HEAD")
        assert (b"content-length", b"5") in start["headers"]
        assert body["body"] == b""

    async def test_no_body_statuses(self) -> None:
        for status in (204, 304):
            start, body = await _send(Response("ignored", status=status))
            assert (b"content-length", b"0") in start["headers"]
            assert body["body"] == b""
