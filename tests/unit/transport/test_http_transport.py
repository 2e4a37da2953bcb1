"""
Unit tests for NotionHttpTransport, driven through httpx.MockTransport.
"""

import json

import httpx
import pytest

from notion_throttle.transport.http import (
    NOTION_VERSION,
    NotionHttpTransport,
    build_headers,
)
from notion_throttle.types import RequestOptions


def make_transport(handler) -> NotionHttpTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NotionHttpTransport(client=client)


class TestBuildHeaders:
    def test_defaults(self):
        headers = build_headers("secret")
        assert headers == {
            "Authorization": "Bearer secret",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    def test_extra_headers_override(self):
        headers = build_headers("secret", {"Notion-Version": "2025-09-03", "X-Trace": "1"})
        assert headers["Notion-Version"] == "2025-09-03"
        assert headers["X-Trace"] == "1"


class TestExecute:
    @pytest.mark.asyncio
    async def test_sends_request(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"object": "page"})

        transport = make_transport(handler)
        response = await transport.execute(
            "/pages/abc",
            "secret",
            RequestOptions(method="PATCH", body={"archived": True}),
        )

        request = seen[0]
        assert request.method == "PATCH"
        assert str(request.url) == "https://api.notion.com/v1/pages/abc"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["Notion-Version"] == NOTION_VERSION
        assert json.loads(request.content) == {"archived": True}
        assert request.headers["Content-Type"] == "application/json"

        assert response.status == 200
        assert response.body == {"object": "page"}
        assert response.error is None

    @pytest.mark.asyncio
    async def test_get_has_no_body(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        await make_transport(handler).execute("/users/me", "t", RequestOptions())
        assert seen[0].content == b""

    @pytest.mark.asyncio
    async def test_nested_body_encoded_as_json(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        body = {"children": [{"paragraph": {"rich_text": [{"text": "café"}]}}]}
        await make_transport(handler).execute(
            "/blocks/abc/children", "t", RequestOptions(method="PATCH", body=body)
        )
        assert json.loads(seen[0].content) == body

    @pytest.mark.asyncio
    async def test_custom_base_url(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = NotionHttpTransport("http://localhost:8080/v1/", client=client)
        await transport.execute("/search", "t", RequestOptions(method="POST", body={}))

        assert str(seen[0].url) == "http://localhost:8080/v1/search"

    @pytest.mark.asyncio
    async def test_http_error_with_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404, json={"object": "error", "message": "Could not find page"}
            )

        response = await make_transport(handler).execute("/pages/x", "t", RequestOptions())

        assert response.status == 404
        assert response.error == "HTTP 404: Could not find page"
        assert response.body["object"] == "error"

    @pytest.mark.asyncio
    async def test_http_error_without_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="")

        response = await make_transport(handler).execute("/pages/x", "t", RequestOptions())

        assert response.status == 502
        assert response.error == "HTTP 502"
        assert response.body is None

    @pytest.mark.asyncio
    async def test_headers_passed_through(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429, json={"object": "error"}, headers={"Retry-After": "4"}
            )

        response = await make_transport(handler).execute("/pages/x", "t", RequestOptions())

        assert response.status == 429
        assert response.headers["retry-after"] == "4"

    @pytest.mark.asyncio
    async def test_empty_success_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="")

        response = await make_transport(handler).execute("/pages/x", "t", RequestOptions())

        assert response.status == 200
        assert response.error == "Empty response"

    @pytest.mark.asyncio
    async def test_no_content(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        response = await make_transport(handler).execute(
            "/blocks/x", "t", RequestOptions(method="DELETE")
        )

        assert response.status == 204
        assert response.error is None
        assert response.body is None

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        response = await make_transport(handler).execute("/pages/x", "t", RequestOptions())

        assert response.status == 200
        assert response.error.startswith("JSON parse error:")
        assert response.body is None

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        response = await make_transport(handler).execute("/pages/x", "t", RequestOptions())

        assert response.status == 0
        assert response.is_transport_error
        assert response.error == "Request failed: connection refused"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self):
        transport = NotionHttpTransport()
        await transport.aclose()
        assert transport._client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )
        async with NotionHttpTransport(client=client):
            pass
        assert not client.is_closed
        await client.aclose()
