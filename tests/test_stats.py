"""Tests for workout statistics."""

from dataclasses import dataclass
from datetime import datetime

from fitness_tracker_server.models.user import User
from fitness_tracker_server.models.workout import Workout
from fitness_tracker_server.services.stats import WorkoutStatsService, compute_workout_stats
from tests.helpers import API, auth_header, create_workout, register_user


@dataclass
class Record:
    user_id: str
    date: datetime
    duration: int
    calories_burned: int
    status: str = "completed"


class TestComputeWorkoutStats:
    """Pure aggregation."""

    def test_completed_workouts_bucketed_by_day(self):
        records = [
            Record("u1", datetime(2024, 1, 1, 7, 0), 30, 300),
            Record("u1", datetime(2024, 1, 1, 18, 30), 20, 200),
            Record("u1", datetime(2024, 1, 1, 12, 0), 60, 600, status="planned"),
        ]

        stats = compute_workout_stats(records, subject_id="u1")

        assert len(stats.daily_stats) == 1
        day = stats.daily_stats[0]
        assert (day.total_duration, day.total_calories, day.workout_count) == (50, 500, 2)
        assert stats.totals.total_duration == 50
        assert stats.totals.total_calories == 500
        assert stats.totals.total_workouts == 2
        assert stats.totals.avg_duration == 25
        assert stats.totals.avg_calories == 250

    def test_empty(self):
        stats = compute_workout_stats([])

        assert stats.daily_stats == []
        assert stats.totals.total_workouts == 0
        assert stats.totals.avg_duration == 0
        assert stats.totals.avg_calories == 0

    def test_ascending_and_gaps_absent(self):
        records = [
            Record("u1", datetime(2024, 1, 5), 10, 100),
            Record("u1", datetime(2024, 1, 1), 20, 200),
        ]

        stats = compute_workout_stats(records)

        assert [str(s.date) for s in stats.daily_stats] == ["2024-01-01", "2024-01-05"]

    def test_other_owners_ignored(self):
        records = [
            Record("u1", datetime(2024, 1, 1), 10, 100),
            Record("u2", datetime(2024, 1, 1), 5, 5),
        ]

        stats = compute_workout_stats(records, subject_id="u1")

        assert stats.totals.total_workouts == 1
        assert stats.totals.total_duration == 10

    def test_averages_rounded(self):
        records = [
            Record("u1", datetime(2024, 1, 1), 10, 100),
            Record("u1", datetime(2024, 1, 2), 10, 100),
            Record("u1", datetime(2024, 1, 3), 11, 101),
        ]

        totals = compute_workout_stats(records).totals

        assert totals.avg_duration == 10.33
        assert totals.avg_calories == 100.33

    def test_totals_equal_sum_of_buckets(self):
        records = [
            Record("u1", datetime(2024, 1, day % 5 + 1, day), day, day * 10) for day in range(12)
        ]

        stats = compute_workout_stats(records)

        assert stats.totals.total_duration == sum(s.total_duration for s in stats.daily_stats)
        assert stats.totals.total_workouts == sum(s.workout_count for s in stats.daily_stats)


class TestWorkoutStatsService:
    """Range filtering against the database."""

    async def test_range_is_inclusive(self, async_session):
        user = User(username="stats_user", email="stats@example.com", password_hash="x")
        async_session.add(user)
        await async_session.flush()
        for day in (1, 15, 31):
            async_session.add(
                Workout(
                    user_id=user.id,
                    title=f"Day {day}",
                    date=datetime(2024, 1, day),
                    duration=10,
                    calories_burned=100,
                    status="completed",
                )
            )
        await async_session.commit()

        service = WorkoutStatsService(async_session)
        stats = await service.get_stats(
            user.id, start=datetime(2024, 1, 1), end=datetime(2024, 1, 31)
        )
        narrowed = await service.get_stats(user.id, start=datetime(2024, 1, 2))

        assert stats.totals.total_workouts == 3
        assert narrowed.totals.total_workouts == 2


class TestStatsEndpoint:
    async def test_stats_over_http(self, client):
        user = await register_user(client)
        token = user["token"]
        completed = {"status": "completed"}
        await create_workout(
            client, token, date="2024-01-01T07:00:00", duration=30, calories_burned=300, **completed
        )
        await create_workout(
            client, token, date="2024-01-01T18:00:00", duration=20, calories_burned=200, **completed
        )
        await create_workout(client, token, date="2024-01-02T08:00:00", duration=45)

        response = await client.get(f"{API}/workouts/stats", headers=auth_header(token))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["daily_stats"] == [
            {"date": "2024-01-01", "total_duration": 50, "total_calories": 500, "workout_count": 2}
        ]
        assert data["totals"]["total_workouts"] == 2
        assert data["totals"]["avg_duration"] == 25

    async def test_unparseable_bound_is_ignored(self, client):
        user = await register_user(client)
        await create_workout(
            client, user["token"], date="2024-03-01T10:00:00", duration=30, status="completed"
        )

        response = await client.get(
            f"{API}/workouts/stats",
            params={"start_date": "not-a-date", "end_date": "2024-03-01T23:59:59"},
            headers=auth_header(user["token"]),
        )

        assert response.json()["data"]["totals"]["total_workouts"] == 1

    async def test_stats_require_token(self, client):
        response = await client.get(f"{API}/workouts/stats")

        assert response.status_code == 401
