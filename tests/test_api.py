"""API endpoint tests."""

from sqlalchemy import select

from fitness_tracker_server.models.user import User
from fitness_tracker_server.repositories.users import UserRepository
from tests.helpers import API, PASSWORD, auth_header, create_workout, register_user


class TestHealth:
    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == {"status": "connected"}
        assert data["environment"] == "test"
        assert "version" in data

    async def test_api_health_alias(self, client):
        assert (await client.get("/api/health")).json()["status"] == "ok"

    async def test_probes(self, client):
        assert (await client.get("/api/health/ready")).json() == {"status": "ready"}
        assert (await client.get("/api/health/live")).json() == {"status": "alive"}

    async def test_root_info(self, client):
        response = await client.get("/")

        assert response.json()["health"] == "/health"


class TestAccounts:
    """Register, login, refresh and profile."""

    async def test_register_returns_user_and_tokens(self, client, session_factory):
        data = await register_user(client, "jane_doe", "Jane@Example.com")

        assert data["user"]["username"] == "jane_doe"
        assert data["user"]["email"] == "jane@example.com"
        assert "password" not in data["user"]
        assert "password_hash" not in data["user"]
        assert data["token"] and data["refresh_token"]
        assert data["expires_in"] == 3600

        async with session_factory() as session:
            user = (await session.execute(select(User))).scalar_one()
            assert user.password_hash != PASSWORD
            assert user.password_hash.startswith("$argon2")

    async def test_duplicate_username_and_email(self, client):
        await register_user(client, "jane_doe", "jane@example.com")

        by_name = await client.post(
            f"{API}/users/register",
            json={"username": "jane_doe", "email": "other@example.com", "password": PASSWORD},
        )
        by_email = await client.post(
            f"{API}/users/register",
            json={"username": "other_user", "email": "jane@example.com", "password": PASSWORD},
        )

        assert by_name.status_code == 409
        assert by_name.json()["message"] == "Username already exists"
        assert by_email.status_code == 409
        assert by_email.json()["message"] == "Email already exists"

    async def test_concurrent_duplicate_is_conflict(self, client, session_factory, monkeypatch):
        """A registration that passes the existence checks but loses the insert is a 409."""
        await register_user(client, "bob", "bob@example.com")

        async def not_taken(self, value):
            return False

        monkeypatch.setattr(UserRepository, "username_exists", not_taken)
        monkeypatch.setattr(UserRepository, "email_exists", not_taken)

        response = await client.post(
            f"{API}/users/register",
            json={"username": "bob", "email": "bob@example.com", "password": PASSWORD},
        )

        assert response.status_code == 409
        assert response.json() == {
            "status": "error",
            "message": "Username or email already exists",
        }
        async with session_factory() as session:
            users = (await session.execute(select(User))).scalars().all()
            assert [user.username for user in users] == ["bob"]

    async def test_login_by_username_or_email(self, client):
        await register_user(client)

        for identifier in ("jane_doe", "jane_doe@example.com"):
            response = await client.post(
                f"{API}/users/login", json={"username": identifier, "password": PASSWORD}
            )
            assert response.status_code == 200
            body = response.json()
            assert body["message"] == "Login successful"
            assert body["data"]["user"]["last_login_at"] is not None

    async def test_login_failures_look_alike(self, client):
        await register_user(client)

        wrong_password = await client.post(
            f"{API}/users/login", json={"username": "jane_doe", "password": "WrongPass1"}
        )
        unknown_user = await client.post(
            f"{API}/users/login", json={"username": "ghost", "password": PASSWORD}
        )

        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()
        assert wrong_password.json()["message"] == "Invalid credentials"

    async def test_me_requires_token(self, client):
        response = await client.get(f"{API}/users/me")

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided, authorization denied"

    async def test_me_rejects_malformed_header(self, client):
        response = await client.get(f"{API}/users/me", headers={"Authorization": "Token abc"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token format. Use: Bearer <token>"

    async def test_expired_token(self, client, clock):
        data = await register_user(client)
        clock.advance(data["expires_in"])

        response = await client.get(f"{API}/users/me", headers=auth_header(data["token"]))

        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired"

    async def test_refresh_issues_new_access_token(self, client, clock):
        data = await register_user(client)
        clock.advance(data["expires_in"] + 1)

        response = await client.post(
            f"{API}/users/refresh", json={"refresh_token": data["refresh_token"]}
        )

        assert response.status_code == 200
        token = response.json()["data"]["token"]
        me = await client.get(f"{API}/users/me", headers=auth_header(token))
        assert me.status_code == 200

    async def test_access_token_cannot_refresh(self, client):
        data = await register_user(client)

        response = await client.post(f"{API}/users/refresh", json={"refresh_token": data["token"]})

        assert response.status_code == 401

    async def test_update_profile(self, client):
        data = await register_user(client)

        response = await client.patch(
            f"{API}/users/me",
            json={"name": "  Jane Doe ", "age": 31, "fitness_goals": ["Run a 10k"]},
            headers=auth_header(data["token"]),
        )

        assert response.status_code == 200
        profile = response.json()["data"]["profile"]
        assert profile["name"] == "Jane Doe"
        assert profile["age"] == 31
        assert profile["fitness_goals"] == ["Run a 10k"]

    async def test_deactivate_blocks_login_and_refresh(self, client):
        data = await register_user(client)
        headers = auth_header(data["token"])

        response = await client.delete(f"{API}/users/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Account deactivated successfully"

        login = await client.post(
            f"{API}/users/login", json={"username": "jane_doe", "password": PASSWORD}
        )
        refresh = await client.post(
            f"{API}/users/refresh", json={"refresh_token": data["refresh_token"]}
        )
        me = await client.get(f"{API}/users/me", headers=headers)

        assert login.status_code == 401
        assert login.json()["message"] == "Account is deactivated"
        assert refresh.status_code == 401
        assert me.status_code == 404


class TestWorkouts:
    async def test_create_defaults(self, client):
        data = await register_user(client)

        workout = await create_workout(client, data["token"], title="  Leg day  ")

        assert workout["title"] == "Leg day"
        assert workout["status"] == "planned"
        assert workout["exercise_ids"] == []
        assert workout["user_id"] == data["user"]["id"]

    async def test_aware_date_stored_as_utc(self, client):
        data = await register_user(client)

        workout = await create_workout(client, data["token"], date="2024-01-01T23:30:00-02:00")

        assert workout["date"] == "2024-01-02T01:30:00"

    async def test_unknown_exercise(self, client):
        data = await register_user(client)

        response = await client.post(
            f"{API}/workouts",
            json={"title": "Leg day", "exercise_ids": ["00000000-0000-4000-8000-000000000000"]},
            headers=auth_header(data["token"]),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "One or more exercises not found"

    async def test_list_filters_and_pagination(self, client):
        token = (await register_user(client))["token"]
        for day in range(1, 6):
            await create_workout(
                client, token, date=f"2024-01-0{day}T10:00:00", status="completed"
            )
        await create_workout(client, token, date="2024-01-03T12:00:00")

        response = await client.get(
            f"{API}/workouts",
            params={"status": "completed", "start_date": "2024-01-02", "limit": 2, "page": 1},
            headers=auth_header(token),
        )

        data = response.json()["data"]
        assert data["pagination"] == {"page": 1, "limit": 2, "total": 4, "pages": 2}
        assert [w["date"] for w in data["workouts"]] == [
            "2024-01-05T10:00:00",
            "2024-01-04T10:00:00",
        ]


class TestExercises:
    EXERCISE = {
        "name": "Goblet Squat",
        "muscle_groups": ["Legs", "Core"],
        "equipment": "Kettlebell",
        "difficulty": "Beginner",
        "media": {"image_url": "https://example.com/squat.png"},
        "instructions": ["Hold the bell", "Squat"],
    }

    async def test_create_search_and_get(self, client):
        headers = auth_header((await register_user(client))["token"])

        created = await client.post(f"{API}/exercises", json=self.EXERCISE, headers=headers)
        assert created.status_code == 201
        exercise = created.json()["data"]
        assert exercise["equipment"] == ["Kettlebell"]
        assert exercise["media"]["image_url"] == "https://example.com/squat.png"

        found = await client.get(
            f"{API}/exercises",
            params={"muscle_groups": "Legs", "search": "goblet"},
            headers=headers,
        )
        missed = await client.get(
            f"{API}/exercises", params={"difficulty": "Advanced"}, headers=headers
        )
        fetched = await client.get(f"{API}/exercises/{exercise['id']}", headers=headers)

        assert found.json()["data"]["pagination"]["total"] == 1
        assert missed.json()["data"]["exercises"] == []
        assert fetched.json()["data"]["name"] == "Goblet Squat"

    async def test_duplicate_name_is_conflict(self, client):
        headers = auth_header((await register_user(client))["token"])
        await client.post(f"{API}/exercises", json=self.EXERCISE, headers=headers)

        response = await client.post(
            f"{API}/exercises", json={**self.EXERCISE, "name": "goblet squat"}, headers=headers
        )

        assert response.status_code == 409

    async def test_workout_with_existing_exercise(self, client):
        token = (await register_user(client))["token"]
        created = await client.post(
            f"{API}/exercises", json=self.EXERCISE, headers=auth_header(token)
        )
        exercise_id = created.json()["data"]["id"]

        workout = await create_workout(client, token, exercise_ids=[exercise_id])

        assert workout["exercise_ids"] == [exercise_id]


class TestSocial:
    async def test_post_like_and_comment(self, client):
        author = await register_user(client, "author_1")
        reader = await register_user(client, "reader_1")
        workout = await create_workout(client, author["token"])

        created = await client.post(
            f"{API}/social/posts",
            json={"content": "Great session", "workout_id": workout["id"]},
            headers=auth_header(author["token"]),
        )
        assert created.status_code == 201
        post_id = created.json()["data"]["id"]

        like_url = f"{API}/social/posts/{post_id}/like"
        liked = await client.post(like_url, headers=auth_header(reader["token"]))
        assert liked.json()["data"] == {"post_id": post_id, "liked": True, "likes_count": 1}
        unliked = await client.post(like_url, headers=auth_header(reader["token"]))
        assert unliked.json()["data"]["liked"] is False
        assert unliked.json()["data"]["likes_count"] == 0

        comment = await client.post(
            f"{API}/social/comments",
            json={"post_id": post_id, "content": "Nice work"},
            headers=auth_header(reader["token"]),
        )
        assert comment.status_code == 201

        comments = await client.get(
            f"{API}/social/comments",
            params={"post_id": post_id},
            headers=auth_header(author["token"]),
        )
        assert [c["content"] for c in comments.json()["data"]] == ["Nice work"]

        feed = await client.get(f"{API}/social/posts", headers=auth_header(reader["token"]))
        assert feed.json()["data"]["pagination"]["total"] == 1

    async def test_comment_on_missing_post(self, client):
        token = (await register_user(client))["token"]

        response = await client.post(
            f"{API}/social/comments",
            json={"post_id": "00000000-0000-4000-8000-000000000000", "content": "Hello"},
            headers=auth_header(token),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Post not found"

    async def test_list_challenges_by_status(self, client):
        token = (await register_user(client))["token"]
        await client.post(
            f"{API}/social/challenges",
            json={"title": "Plank month", "start_date": "2024-01-01", "end_date": "2024-01-31"},
            headers=auth_header(token),
        )

        upcoming = await client.get(
            f"{API}/social/challenges", params={"status": "upcoming"}, headers=auth_header(token)
        )
        active = await client.get(
            f"{API}/social/challenges", params={"status": "active"}, headers=auth_header(token)
        )

        assert [c["title"] for c in upcoming.json()["data"]] == ["Plank month"]
        assert active.json()["data"] == []
