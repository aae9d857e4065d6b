"""SocialClient / InMemoryBackend のユニットテスト

実バックエンドは MagicMock で差し替え、モックへの切り替え条件を検証する。
"""

from unittest.mock import MagicMock

import pytest

from social_api.client.base import BackendClient, BackendError, BackendUnavailableError
from social_api.client.mock_backend import MOCK_USER_ID, InMemoryBackend
from social_api.client.services import SocialClient

_USER = "real-user-1"


@pytest.fixture
def backend():
    return MagicMock(spec=BackendClient)


@pytest.fixture
def client(backend):
    return SocialClient(backend)


class TestBackendSelection:
    def test_mock_user_never_calls_backend(self, client, backend):
        users = client.search_users("miller", MOCK_USER_ID)

        assert {u["id"] for u in users} == {"friend-sent-1", "search-1"}
        backend.search_users.assert_not_called()

    def test_real_user_uses_backend(self, client, backend):
        backend.search_users.return_value = [{"id": "x", "name": "Xavier"}]

        users = client.search_users("xav", _USER)

        assert users == [{"id": "x", "name": "Xavier"}]
        backend.search_users.assert_called_once_with("xav")

    def test_unavailable_backend_falls_back_to_mock(self, client, backend):
        backend.search_users.side_effect = BackendUnavailableError("connection refused")

        users = client.search_users("emma", _USER)

        assert [u["id"] for u in users] == ["search-2"]

    def test_fallback_disabled_raises(self, backend):
        backend.search_users.side_effect = BackendUnavailableError("connection refused")
        client = SocialClient(backend, mock_fallback=False)

        with pytest.raises(BackendUnavailableError):
            client.search_users("emma", _USER)

    def test_client_errors_are_not_hidden(self, client, backend):
        """4xx はモックに切り替えず呼び出し元に返すこと"""
        backend.send_friend_request.side_effect = BackendError(
            "Friendship request already exists", status_code=409
        )

        with pytest.raises(BackendError) as exc_info:
            client.send_friend_request(_USER, "other")

        assert exc_info.value.status_code == 409


class TestSearch:
    def test_excludes_current_user(self, client, backend):
        backend.search_users.return_value = [{"id": _USER}, {"id": "other"}]

        assert client.search_users("a", _USER) == [{"id": "other"}]

    def test_blank_query_returns_empty(self, client, backend):
        assert client.search_users("   ", _USER) == []
        backend.search_users.assert_not_called()


class TestBatchGetUsers:
    def test_uses_batch_endpoint(self, client, backend):
        backend.batch_get_users.return_value = {"users": [{"id": "a"}], "missingIds": []}

        result = client.batch_get_users(["a", "a"], _USER)

        assert result["users"] == [{"id": "a"}]
        backend.batch_get_users.assert_called_once_with(["a"])

    def test_falls_back_to_per_id_fetch(self, client, backend):
        """一括取得が失敗したら 1 件ずつ取得し、失敗した ID を missingIds に入れること"""
        backend.batch_get_users.side_effect = BackendError("Not Found", status_code=404)

        def get_user(user_id):
            if user_id == "ghost":
                raise BackendError("User not found", status_code=404)
            return {"id": user_id}

        backend.get_user.side_effect = get_user

        result = client.batch_get_users(["a", "ghost", "b"], _USER)

        assert result == {"users": [{"id": "a"}, {"id": "b"}], "missingIds": ["ghost"]}

    def test_unavailable_backend_falls_back_to_mock(self, client, backend):
        backend.batch_get_users.side_effect = BackendUnavailableError("down")
        backend.get_user.side_effect = BackendUnavailableError("down")

        result = client.batch_get_users(["friend-1", "nobody"], _USER)

        assert [u["id"] for u in result["users"]] == ["friend-1"]
        assert result["missingIds"] == ["nobody"]

    def test_empty_ids(self, client, backend):
        assert client.batch_get_users([], _USER) == {"users": [], "missingIds": []}
        backend.batch_get_users.assert_not_called()


class TestFriendRequestsWithMock:
    def test_send_returns_success_message(self, client):
        result = client.send_friend_request(MOCK_USER_ID, "search-1")

        assert result == {"success": True, "message": "Friend request sent successfully!"}

    def test_duplicate_request_is_rejected(self, client):
        with pytest.raises(BackendError) as exc_info:
            client.send_friend_request(MOCK_USER_ID, "friend-1")

        assert exc_info.value.status_code == 409

    def test_accept_incoming_request(self, client):
        result = client.respond_to_friend_request(
            "friendship-3", "accepted", MOCK_USER_ID
        )

        assert result == {"success": True, "message": "Friend request accepted!"}
        ids = client.get_user_friendships(MOCK_USER_ID)
        assert "friend-3" in ids["friends"]
        assert ids["pendingRequests"] == []

    def test_cannot_respond_twice(self, client):
        client.respond_to_friend_request("friendship-3", "rejected", MOCK_USER_ID)

        with pytest.raises(BackendError) as exc_info:
            client.respond_to_friend_request("friendship-3", "accepted", MOCK_USER_ID)

        assert exc_info.value.status_code == 409

    def test_unknown_friendship(self, client):
        with pytest.raises(BackendError) as exc_info:
            client.respond_to_friend_request("nope", "accepted", MOCK_USER_ID)

        assert exc_info.value.status_code == 404

    def test_mock_state_is_per_instance(self, backend):
        """モックへの書き込みは別のクライアントから見えないこと"""
        first = SocialClient(backend)
        second = SocialClient(backend)

        first.send_friend_request(MOCK_USER_ID, "search-1")

        assert "search-1" in first.get_user_friendships(MOCK_USER_ID)["sentRequests"]
        assert "search-1" not in second.get_user_friendships(MOCK_USER_ID)[
            "sentRequests"
        ]


class TestFriendshipsData:
    def test_mock_fixture_data(self, client):
        data = client.get_friendships_data(MOCK_USER_ID)

        assert [f["friend"]["name"] for f in data["friends"]] == [
            "Alice Johnson",
            "Bob Wilson",
        ]
        assert [r["requester"]["name"] for r in data["pendingRequests"]] == [
            "Charlie Brown"
        ]
        assert [s["friend"]["name"] for s in data["sentRequests"]] == ["Dave Miller"]

    def test_missing_user_detail_is_none(self, client, backend):
        backend.list_friendships.return_value = [
            {
                "id": "f1",
                "userId": _USER,
                "friendId": "gone",
                "requestedBy": _USER,
                "status": "accepted",
            }
        ]
        backend.list_pending_requests.return_value = []
        backend.batch_get_users.return_value = {"users": [], "missingIds": ["gone"]}

        data = client.get_friendships_data(_USER)

        assert data["friends"][0]["friend"] is None
        assert data["sentRequests"] == []


class TestInMemoryBackend:
    def test_self_request_is_400(self):
        with pytest.raises(BackendError) as exc_info:
            InMemoryBackend().send_friend_request(MOCK_USER_ID, MOCK_USER_ID)

        assert exc_info.value.status_code == 400

    def test_get_unknown_user_is_404(self):
        with pytest.raises(BackendError) as exc_info:
            InMemoryBackend().get_user("nobody")

        assert exc_info.value.status_code == 404

    def test_batch_reports_missing(self):
        result = InMemoryBackend().batch_get_users(["friend-1", "nobody"])

        assert [u["id"] for u in result["users"]] == ["friend-1"]
        assert result["missingIds"] == ["nobody"]
