"""HttpBackendClient のユニットテスト

httpx.MockTransport でバックエンドのレスポンスを差し替える。
"""

import json

import httpx
import pytest

from social_api.client.base import BackendError, BackendUnavailableError
from social_api.client.http_client import HttpBackendClient
from social_api.config import ClientConfig


def _client(handler) -> HttpBackendClient:
    return HttpBackendClient(
        "http://backend.test", transport=httpx.MockTransport(handler)
    )


class TestRequests:
    def test_search_sends_query_param(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["q"] = request.url.params["q"]
            return httpx.Response(200, json={"users": [{"id": "u1"}]})

        users = _client(handler).search_users("alice")

        assert users == [{"id": "u1"}]
        assert seen == {"path": "/api/users/search", "q": "alice"}

    def test_batch_posts_user_ids(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"userIds": ["u1", "u2"]}
            return httpx.Response(
                200, json={"users": [{"id": "u1"}], "missingIds": ["u2"]}
            )

        result = _client(handler).batch_get_users(["u1", "u2"])

        assert result == {"users": [{"id": "u1"}], "missingIds": ["u2"]}

    def test_respond_uses_put(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            assert request.url.path == "/api/friendships/f1"
            return httpx.Response(200, json={"id": "f1", "status": "accepted"})

        result = _client(handler).respond_to_friend_request("f1", "accepted")

        assert result["status"] == "accepted"

    def test_list_pending_unwraps_requests(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"requests": [{"id": "f1"}]})

        assert _client(handler).list_pending_requests("u1") == [{"id": "f1"}]


class TestErrorMapping:
    def test_4xx_is_backend_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"error": "Friendship request already exists"})

        with pytest.raises(BackendError) as exc_info:
            _client(handler).send_friend_request("u1", "u2")

        assert not isinstance(exc_info.value, BackendUnavailableError)
        assert exc_info.value.status_code == 409
        assert str(exc_info.value) == "Friendship request already exists"

    def test_503_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "Database not configured"})

        with pytest.raises(BackendUnavailableError) as exc_info:
            _client(handler).get_user("u1")

        assert exc_info.value.status_code == 503

    def test_transport_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendUnavailableError):
            _client(handler).list_friendships("u1")

    def test_non_json_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not json")

        with pytest.raises(BackendError) as exc_info:
            _client(handler).get_user("u1")

        assert exc_info.value.status_code == 404

    def test_non_object_json_error_body(self):
        """配列の JSON 本文でも 502 は BackendUnavailableError になること"""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json=["bad gateway"])

        with pytest.raises(BackendUnavailableError) as exc_info:
            _client(handler).search_users("emma")

        assert exc_info.value.status_code == 502
        assert str(exc_info.value) == "Bad Gateway"

    def test_string_json_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json="nope")

        with pytest.raises(BackendError) as exc_info:
            _client(handler).get_user("u1")

        assert exc_info.value.status_code == 400


def test_from_config():
    client = HttpBackendClient.from_config(
        ClientConfig(api_base_url="http://api.test", timeout_seconds=2.5)
    )
    try:
        assert client._client.base_url.host == "api.test"
        assert client._client.timeout.read == 2.5
    finally:
        client.close()
