"""グループ API のユニットテスト"""

import pytest

from social_api.domain.models import Group
from social_api.entrypoints.api.routes.groups import normalize_tags


class TestNormalizeTags:
    def test_strips_lowercases_and_dedupes(self):
        assert normalize_tags([" Hiking", "hiking", "", "Outdoors "]) == [
            "hiking",
            "outdoors",
        ]


class TestCreateGroup:
    def test_create_returns_201(self, api_client):
        response = api_client.post(
            "/api/groups",
            json={"name": "Hiking Club", "adminIds": ["u1"], "tags": ["Hiking"]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["adminIds"] == ["u1"]
        assert data["tags"] == ["hiking"]
        assert data["isPublic"] is True

    def test_legacy_admin_id_and_privacy(self, api_client):
        response = api_client.post(
            "/api/groups",
            json={"name": "Secret", "adminId": "u1", "privacy": "private"},
        )

        assert response.status_code == 201
        assert response.json()["adminIds"] == ["u1"]
        assert response.json()["isPublic"] is False

    def test_admin_required(self, api_client):
        response = api_client.post("/api/groups", json={"name": "Nobody's"})

        assert response.status_code == 400
        assert response.json() == {"error": "At least one admin is required"}


class TestReadGroups:
    @pytest.fixture
    def seeded(self, repos, sample_group):
        repos.groups.create(sample_group)
        repos.groups.create(
            Group(id="g2", name="Book Circle", admin_ids=["u2"], is_public=False)
        )
        return repos

    def test_list_public_only(self, api_client, seeded):
        response = api_client.get("/api/groups")

        assert [g["id"] for g in response.json()["groups"]] == ["g1"]

    def test_search_by_tags(self, api_client, seeded):
        response = api_client.get("/api/groups/search", params={"tags": "HIKING, x"})

        assert [g["id"] for g in response.json()["groups"]] == ["g1"]

    def test_search_requires_tags(self, api_client, seeded):
        response = api_client.get("/api/groups/search")

        assert response.status_code == 400
        assert response.json() == {"error": "Tags parameter is required"}

    def test_search_by_term(self, api_client, seeded):
        response = api_client.get("/api/groups/search/book")

        assert [g["id"] for g in response.json()["groups"]] == ["g2"]

    def test_user_groups(self, api_client, seeded):
        response = api_client.get("/api/groups/user/u2")

        assert [g["id"] for g in response.json()["groups"]] == ["g2"]

    def test_get_missing_returns_404(self, api_client):
        response = api_client.get("/api/groups/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Group not found"}


class TestUpdateGroup:
    def test_update_and_privacy(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        response = api_client.put(
            "/api/groups/g1", json={"description": "Every Sunday", "privacy": "private"}
        )

        assert response.status_code == 200
        assert response.json()["description"] == "Every Sunday"
        assert response.json()["isPublic"] is False
        assert response.json()["name"] == "Hiking Club"

    def test_removing_all_admins_returns_400(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        response = api_client.put("/api/groups/g1", json={"adminIds": []})

        assert response.status_code == 400
        assert repos.groups.get_by_id("g1").data.admin_ids == ["u1"]

    def test_delete(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        response = api_client.delete("/api/groups/g1")

        assert response.json() == {"message": "Group deleted successfully"}
        assert repos.groups.get_by_id("g1").is_not_found


class TestMembership:
    def test_apply_then_accept(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        applied = api_client.post("/api/groups/g1/apply", json={"userId": "u2"})
        accepted = api_client.post(
            "/api/groups/g1/membership", json={"userId": "u2", "action": "accept"}
        )

        assert applied.json() == {"message": "Membership request submitted"}
        assert accepted.json() == {"message": "Membership request accepted"}
        group = repos.groups.get_by_id("g1").data
        assert "u2" in group.member_ids
        assert group.membership_requests == []

    def test_apply_twice_keeps_single_request(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        api_client.post("/api/groups/g1/apply", json={"userId": "u2"})
        api_client.post("/api/groups/g1/apply", json={"userId": "u2"})

        assert repos.groups.get_by_id("g1").data.membership_requests == ["u2"]

    def test_apply_requires_user(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        response = api_client.post("/api/groups/g1/apply", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "User ID is required"}

    def test_invalid_action(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        response = api_client.post(
            "/api/groups/g1/membership", json={"userId": "u2", "action": "approve"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": 'Invalid action. Use "accept" or "reject"'}

    def test_membership_requires_fields(self, api_client):
        response = api_client.post("/api/groups/g1/membership", json={"userId": "u2"})

        assert response.status_code == 400
        assert response.json() == {"error": "User ID and action are required"}


class TestGroupPosts:
    def test_create_and_list(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        created = api_client.post(
            "/api/groups/g1/posts", json={"authorId": "u1", "content": "Hello"}
        )
        listed = api_client.get("/api/groups/g1/posts")

        assert created.status_code == 201
        assert created.json()["groupId"] == "g1"
        assert created.json()["eventId"] is None
        assert [p["id"] for p in listed.json()] == [created.json()["id"]]

    def test_post_requires_content(self, api_client, repos, sample_group):
        repos.groups.create(sample_group)

        response = api_client.post("/api/groups/g1/posts", json={"authorId": "u1"})

        assert response.status_code == 400
        assert response.json() == {"error": "Content is required"}

    def test_unknown_group_returns_404(self, api_client):
        response = api_client.post(
            "/api/groups/nope/posts", json={"authorId": "u1", "content": "Hi"}
        )

        assert response.status_code == 404
