"""InMemoryRepository のユニットテスト

Firestore アダプターと同じ結果型（conflict / not_found / revision）になることを検証する。
"""

import pytest

from social_api.adapters.memory_repository import (
    InMemoryEventRepository,
    InMemoryFriendshipRepository,
    InMemoryGroupRepository,
    InMemoryUserRepository,
    matches,
)
from social_api.domain.models import Event, Friendship, Group, User
from social_api.domain.ports import AllOf, AnyOf, ErrorKind, Where


class TestMatches:
    @pytest.mark.parametrize(
        "condition, expected",
        [
            (Where("name", "==", "Alice"), True),
            (Where("name", "!=", "Alice"), False),
            (Where("age", ">", 20), True),
            (Where("age", "<=", 20), False),
            (Where("tags", "array_contains", "a"), True),
            (Where("tags", "array_contains_any", ["x", "b"]), True),
            (Where("name", "in", ["Bob", "Carol"]), False),
            (Where("missing", ">", 1), False),
            (AnyOf((Where("name", "==", "Bob"), Where("age", "==", 30))), True),
            (AllOf((Where("name", "==", "Alice"), Where("age", "==", 31))), False),
        ],
    )
    def test_conditions(self, condition, expected):
        data = {"name": "Alice", "age": 30, "tags": ["a", "b"]}
        assert matches(data, condition) is expected

    def test_type_mismatch_is_not_a_match(self):
        assert matches({"age": "thirty"}, Where("age", ">", 1)) is False


class TestCrud:
    def test_create_and_get(self, alice):
        repo = InMemoryUserRepository()

        created = repo.create(alice)
        fetched = repo.get_by_id(alice.id)

        assert created.success
        assert fetched.data == alice

    def test_create_duplicate_id_is_conflict(self, alice):
        repo = InMemoryUserRepository([alice])

        result = repo.create(alice)

        assert not result.success
        assert result.error_kind is ErrorKind.CONFLICT

    def test_get_missing_is_not_found(self):
        result = InMemoryUserRepository().get_by_id("nope")
        assert result.is_not_found

    def test_returned_entities_are_copies(self, alice):
        """取得したエンティティを書き換えても保存内容は変わらないこと"""
        repo = InMemoryUserRepository([alice])

        fetched = repo.get_by_id(alice.id).data
        fetched.contact_details["phone"] = "000"

        assert repo.get_by_id(alice.id).data.contact_details == {}

    def test_delete(self, alice):
        repo = InMemoryUserRepository([alice])

        assert repo.delete(alice.id).success
        assert repo.delete(alice.id).is_not_found
        assert len(repo) == 0


class TestUpdate:
    def test_update_merges_and_bumps_revision(self, alice):
        repo = InMemoryUserRepository([alice])

        result = repo.update(alice.id, {"bio": "Climber", "id": "hijack"})

        assert result.success
        assert result.data.id == alice.id
        assert result.data.bio == "Climber"
        assert result.data.name == "Alice Johnson"
        assert result.data.revision == 1

    def test_stale_revision_is_conflict(self, alice):
        repo = InMemoryUserRepository([alice])
        repo.update(alice.id, {"bio": "first"}, expected_revision=0)

        result = repo.update(alice.id, {"bio": "second"}, expected_revision=0)

        assert result.is_conflict
        assert repo.get_by_id(alice.id).data.bio == "first"

    def test_update_missing_is_not_found(self):
        result = InMemoryUserRepository().update("nope", {"bio": "x"})
        assert result.is_not_found


class TestQueries:
    def test_get_many_reports_missing_ids_in_order(self, alice, bob):
        repo = InMemoryUserRepository([alice, bob])

        batch = repo.batch_get(["x", "u2", "u1", "y", "u2"]).data

        assert [u.id for u in batch.found] == ["u2", "u1"]
        assert batch.missing_ids == ["x", "y"]

    def test_batch_get_empty(self):
        batch = InMemoryUserRepository().batch_get([]).data
        assert batch.found == []
        assert batch.missing_ids == []

    def test_user_lookups(self, alice, bob):
        repo = InMemoryUserRepository([alice, bob])

        assert repo.get_by_email("bob@example.com").data.id == "u2"
        assert repo.get_by_external_id("ext-alice").data.id == "u1"
        assert repo.get_by_email("nobody@example.com").is_not_found

    def test_user_search_is_case_insensitive(self, alice, bob):
        repo = InMemoryUserRepository([alice, bob])

        assert [u.id for u in repo.search("JOHN").data] == ["u1"]
        assert [u.id for u in repo.search("bob@").data] == ["u2"]

    def test_find_between_ignores_direction(self, pending_friendship):
        repo = InMemoryFriendshipRepository([pending_friendship])

        assert repo.find_between("u2", "u1").data.id == "f1"
        assert repo.find_between("u1", "u3").is_not_found

    def test_pending_only_for_recipient(self, pending_friendship):
        repo = InMemoryFriendshipRepository([pending_friendship])

        assert [f.id for f in repo.list_pending_for("u2").data] == ["f1"]
        assert repo.list_pending_for("u1").data == []

    def test_group_queries(self, sample_group):
        private = Group(id="g2", name="Secret", admin_ids=["u2"], is_public=False)
        repo = InMemoryGroupRepository([sample_group, private])

        assert [g.id for g in repo.list_public().data] == ["g1"]
        assert [g.id for g in repo.list_for_user("u2").data] == ["g2"]
        assert [g.id for g in repo.search_by_tags(["hiking", "x"]).data] == ["g1"]
        assert [g.id for g in repo.search("secret").data] == ["g2"]
        assert not repo.search_by_tags([]).success

    def test_order_by_excludes_missing_field(self):
        repo = InMemoryEventRepository(
            [
                Event(id="late", organizer_id="u1", start_date="2030-02-01T00:00:00"),
                Event(id="early", organizer_id="u1", start_date="2030-01-01T00:00:00"),
                Event(id="undated", organizer_id="u1"),
            ]
        )
        # 旧データ相当: startDate フィールド自体が無いドキュメント
        del repo._docs["undated"]["startDate"]

        events = repo.list_by_organizer("u1").data

        assert [e.id for e in events] == ["early", "late"]

    def test_instances_do_not_share_state(self, alice):
        first = InMemoryUserRepository()
        second = InMemoryUserRepository()

        first.create(alice)

        assert len(first) == 1
        assert len(second) == 0


def test_friendship_round_trips_through_repository():
    repo = InMemoryFriendshipRepository()
    friendship = Friendship(user_id="u1", friend_id="u2", requested_by="u1")

    repo.create(friendship)

    assert repo.get_by_id(friendship.id).data == friendship


def test_user_with_privacy_settings_round_trips():
    repo = InMemoryUserRepository()
    user = User(email="a@example.com", name="A")
    user.privacy_settings.bio_visibility = "all_users"

    repo.create(user)

    assert repo.get_by_id(user.id).data.privacy_settings.bio_visibility == "all_users"
