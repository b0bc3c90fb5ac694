"""
Tests for the Bot API request layer.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from tgupdater.clients.bot_api import BotApiClient
from tgupdater.exceptions.api import BotApiError, TransportError

TOKEN = "123456:ABCDEF"


def form(request):
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def make_client(handler):
    return BotApiClient(TOKEN, transport=httpx.MockTransport(handler))


class TestRequest:
    @pytest.mark.asyncio
    async def test_get_updates_request(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["form"] = form(request)
            return httpx.Response(200, json={"ok": True, "result": [{"update_id": 1}]})

        client = make_client(handler)
        response = await client.get_updates(offset=8, timeout=0, limit=100)
        await client.close_client()

        assert seen["path"] == f"/bot{TOKEN}/getUpdates"
        assert seen["form"] == {"offset": "8", "timeout": "0", "limit": "100"}
        assert response.ok is True
        assert response.result == [{"update_id": 1}]

    @pytest.mark.asyncio
    async def test_api_error_is_returned(self):
        def handler(request):
            return httpx.Response(
                409,
                json={"ok": False, "error_code": 409, "description": "Conflict: webhook is active"},
            )

        client = make_client(handler)
        response = await client.get_updates()

        assert response.ok is False
        assert response.error_code == 409
        assert response.description == "Conflict: webhook is active"

    @pytest.mark.asyncio
    async def test_call_raises_on_api_error(self):
        def handler(request):
            return httpx.Response(401, json={"ok": False, "error_code": 401, "description": "Unauthorized"})

        client = make_client(handler)
        with pytest.raises(BotApiError) as exc_info:
            await client.call("getMe")

        assert exc_info.value.description == "Unauthorized"
        assert exc_info.value.error_code == 401

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(TransportError):
            await client.get_updates()

    @pytest.mark.asyncio
    async def test_non_json_body_is_transport_error(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        client = make_client(handler)
        with pytest.raises(TransportError):
            await client.request("getUpdates")

    @pytest.mark.asyncio
    async def test_file_upload_is_multipart(self):
        seen = {}

        def handler(request):
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

        client = make_client(handler)
        result = await client.call(
            "sendDocument", {"chat_id": 42}, files={"document": ("notes.txt", b"hello")}
        )

        assert result == {"message_id": 1}
        assert seen["content_type"].startswith("multipart/form-data")
        assert b"notes.txt" in seen["body"]
        assert b"hello" in seen["body"]

    def test_encode_params(self):
        encoded = BotApiClient.encode_params(
            {"text": "hi", "chat_id": 5, "silent": True, "skip": None, "types": ["message"]}
        )

        assert encoded == {
            "text": "hi",
            "chat_id": "5",
            "silent": "true",
            "types": json.dumps(["message"]),
        }


class TestWebhookMethods:
    @pytest.mark.asyncio
    async def test_delete_webhook(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["form"] = form(request)
            return httpx.Response(200, json={"ok": True, "result": True, "description": "Webhook is already deleted"})

        client = make_client(handler)

        assert await client.delete_webhook() is True
        assert seen["path"].endswith("/deleteWebhook")
        assert seen["form"] == {}

    @pytest.mark.asyncio
    async def test_set_webhook_params(self):
        seen = {}

        def handler(request):
            seen["form"] = form(request)
            return httpx.Response(200, json={"ok": True, "result": True})

        client = make_client(handler)
        assert await client.set_webhook("https://example.com/hook", max_connections=40) is True

        assert seen["form"] == {
            "url": "https://example.com/hook",
            "max_connections": "40",
            "allowed_updates": "[]",
        }

    @pytest.mark.asyncio
    async def test_get_webhook_info(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "result": {
                        "url": "https://example.com/hook",
                        "has_custom_certificate": False,
                        "pending_update_count": 3,
                        "last_error_date": 1700000000,
                        "last_error_message": "Connection timed out",
                        "max_connections": 40,
                        "allowed_updates": ["message"],
                    },
                },
            )

        client = make_client(handler)
        info = await client.get_webhook_info()

        assert info.url == "https://example.com/hook"
        assert info.pending_update_count == 3
        assert info.last_error_message == "Connection timed out"
        assert info.allowed_updates == ["message"]

    @pytest.mark.asyncio
    async def test_get_me(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"ok": True, "result": {"id": 99, "is_bot": True, "first_name": "Bot", "username": "my_bot"}},
            )

        client = make_client(handler)
        me = await client.get_me()

        assert me.id == 99
        assert me.username == "my_bot"
