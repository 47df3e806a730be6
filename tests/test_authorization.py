"""Tests for ownership checks."""

from dataclasses import dataclass

import pytest
from sqlalchemy import func, select

from fitness_tracker_server.core.authorization import AccessDecision, decide_access, ensure_access
from fitness_tracker_server.core.errors import AppError, ErrorKind
from fitness_tracker_server.models.social import ChallengeParticipant
from fitness_tracker_server.models.workout import Workout
from tests.helpers import API, auth_header, create_workout, register_user

MISSING_ID = "00000000-0000-4000-8000-000000000000"


@dataclass
class Record:
    user_id: str
    is_active: bool = True


class TestDecideAccess:
    def test_owner_allowed(self):
        assert decide_access("u1", Record("u1")) is AccessDecision.ALLOWED

    def test_other_user_forbidden(self):
        assert decide_access("u2", Record("u1")) is AccessDecision.FORBIDDEN

    def test_missing_resource(self):
        assert decide_access("u1", None) is AccessDecision.NOT_FOUND

    def test_inactive_resource_is_not_found_even_for_others(self):
        assert decide_access("u2", Record("u1", is_active=False)) is AccessDecision.NOT_FOUND

    def test_ensure_access_messages(self):
        with pytest.raises(AppError) as exc_info:
            ensure_access("u2", Record("u1"), resource_name="Workout", action="update")

        assert exc_info.value.kind is ErrorKind.FORBIDDEN
        assert exc_info.value.message == "Unauthorized to update this workout"

        with pytest.raises(AppError) as exc_info:
            ensure_access("u2", None, resource_name="Workout")

        assert exc_info.value.message == "Workout not found"

    def test_ensure_access_returns_owned_resource(self):
        record = Record("u1")

        assert ensure_access("u1", record) is record


class TestWorkoutOwnership:
    """Cross-user access over HTTP."""

    async def test_other_user_cannot_read_update_or_delete(self, client, session_factory):
        owner = await register_user(client, "owner_1")
        intruder = await register_user(client, "intruder")
        workout = await create_workout(client, owner["token"], duration=30)
        url = f"{API}/workouts/{workout['id']}"
        headers = auth_header(intruder["token"])

        read = await client.get(url, headers=headers)
        update = await client.put(url, json={"title": "Hijacked"}, headers=headers)
        delete = await client.delete(url, headers=headers)

        assert read.status_code == 403
        assert update.status_code == 403
        assert update.json()["message"] == "Unauthorized to update this workout"
        assert delete.status_code == 403
        async with session_factory() as session:
            stored = await session.get(Workout, workout["id"])
            assert stored is not None
            assert stored.title == "Morning run"

    async def test_missing_workout_is_404(self, client):
        user = await register_user(client)

        response = await client.get(
            f"{API}/workouts/{MISSING_ID}", headers=auth_header(user["token"])
        )

        assert response.status_code == 404
        assert response.json() == {"status": "error", "message": "Workout not found"}

    async def test_malformed_workout_id(self, client):
        user = await register_user(client)

        response = await client.get(
            f"{API}/workouts/not-a-uuid", headers=auth_header(user["token"])
        )

        assert response.status_code == 422

    async def test_owner_can_update_and_delete(self, client):
        user = await register_user(client)
        workout = await create_workout(client, user["token"])
        url = f"{API}/workouts/{workout['id']}"

        update = await client.put(
            url, json={"status": "completed", "duration": 40}, headers=auth_header(user["token"])
        )
        assert update.status_code == 200
        assert update.json()["data"]["status"] == "completed"
        assert update.json()["data"]["duration"] == 40

        delete = await client.delete(url, headers=auth_header(user["token"]))
        assert delete.status_code == 200
        assert (await client.get(url, headers=auth_header(user["token"]))).status_code == 404

    async def test_list_only_shows_own_workouts(self, client):
        first = await register_user(client, "first_user")
        second = await register_user(client, "second_user")
        await create_workout(client, first["token"])
        await create_workout(client, second["token"], title="Swim")

        response = await client.get(f"{API}/workouts", headers=auth_header(second["token"]))

        workouts = response.json()["data"]["workouts"]
        assert [w["title"] for w in workouts] == ["Swim"]

    async def test_cannot_share_someone_elses_workout(self, client):
        owner = await register_user(client, "owner_1")
        other = await register_user(client, "other_1")
        workout = await create_workout(client, owner["token"])

        response = await client.post(
            f"{API}/social/posts",
            json={"content": "Look at this", "workout_id": workout["id"]},
            headers=auth_header(other["token"]),
        )

        assert response.status_code == 403


class TestChallenges:
    async def test_join_twice_is_conflict(self, client, session_factory):
        user = await register_user(client)
        headers = auth_header(user["token"])
        created = await client.post(
            f"{API}/social/challenges",
            json={"title": "Plank month", "start_date": "2024-01-01", "end_date": "2024-01-31"},
            headers=headers,
        )
        challenge_id = created.json()["data"]["id"]

        first = await client.post(f"{API}/social/challenges/{challenge_id}/join", headers=headers)
        second = await client.post(f"{API}/social/challenges/{challenge_id}/join", headers=headers)

        assert first.status_code == 200
        assert first.json()["data"]["participants"] == [user["user"]["id"]]
        assert second.status_code == 409
        assert second.json()["message"] == "User already joined this challenge"
        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(ChallengeParticipant))
            assert count == 1

    async def test_join_missing_challenge(self, client):
        user = await register_user(client)

        response = await client.post(
            f"{API}/social/challenges/{MISSING_ID}/join", headers=auth_header(user["token"])
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Challenge not found"
