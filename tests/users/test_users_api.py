"""User listing, leaderboard, stats and profile endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestListUsers:
    @pytest.mark.asyncio
    async def test_admin_lists_newest_first(self, client: AsyncClient, admin_headers, make_user):
        await make_user(name="First")
        await make_user(name="Second")

        response = await client.get("/api/v1/users", params={"role": "student"}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [u["name"] for u in data["data"]] == ["Second", "First"]
        assert all("password_hash" not in u for u in data["data"])

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, admin_headers, make_user):
        for _ in range(3):
            await make_user()

        response = await client.get("/api/v1/users", params={"page": 2, "limit": 2}, headers=admin_headers)

        data = response.json()
        assert data["total"] == 4  # three students plus the admin
        assert data["page"] == 2
        assert data["pages"] == 2
        assert data["count"] == 2

    @pytest.mark.asyncio
    async def test_includes_inactive(self, client: AsyncClient, admin_headers, make_user):
        await make_user(is_active=False)
        response = await client.get("/api/v1/users", params={"role": "student"}, headers=admin_headers)
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_department_filter(self, client: AsyncClient, admin_headers, make_user):
        await make_user(name="Civil", department="Civil Engineering")
        await make_user(name="CSE")
        response = await client.get(
            "/api/v1/users", params={"department": "Civil Engineering"}, headers=admin_headers,
        )
        assert [u["name"] for u in response.json()["data"]] == ["Civil"]

    @pytest.mark.asyncio
    async def test_students_forbidden(self, client: AsyncClient, student_headers):
        response = await client.get("/api/v1/users", headers=student_headers)
        assert response.status_code == 403


class TestLeaderboard:
    @pytest.mark.asyncio
    async def test_ranked_by_points(self, client: AsyncClient, student_headers, make_user):
        await make_user(name="Emma Davis", total_points=1800)
        await make_user(name="David Brown", total_points=3200)
        await make_user(name="Mike Chen", total_points=2200)
        await make_user(name="Dropped Out", total_points=9000, is_active=False)

        response = await client.get("/api/v1/users/leaderboard", params={"limit": 3}, headers=student_headers)

        data = response.json()["data"]
        assert [(e["rank"], e["name"]) for e in data] == [
            (1, "David Brown"),
            (2, "Mike Chen"),
            (3, "Emma Davis"),
        ]
        assert data[0]["level"] == 17

    @pytest.mark.asyncio
    async def test_department_leaderboard(self, client: AsyncClient, student_headers, make_user):
        await make_user(name="Civil Star", department="Civil Engineering", total_points=500)
        await make_user(name="CSE Star", total_points=900)

        response = await client.get(
            "/api/v1/users/leaderboard",
            params={"department": "Civil Engineering"},
            headers=student_headers,
        )
        assert [e["name"] for e in response.json()["data"]] == ["Civil Star"]


class TestStats:
    @pytest.mark.asyncio
    async def test_counts(self, client: AsyncClient, admin_headers, make_user):
        await make_user(department="Civil Engineering", year="1st Year")
        await make_user(department="Civil Engineering", year="2nd Year")
        await make_user(is_active=False)

        response = await client.get("/api/v1/users/stats", headers=admin_headers)

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_users"] == 4
        assert stats["active_users"] == 3
        assert stats["students"] == 3
        assert stats["admins"] == 1
        assert stats["department_stats"] == [{"key": "Civil Engineering", "count": 2}]
        assert stats["year_stats"] == [
            {"key": "1st Year", "count": 1},
            {"key": "2nd Year", "count": 1},
        ]

    @pytest.mark.asyncio
    async def test_students_forbidden(self, client: AsyncClient, student_headers):
        response = await client.get("/api/v1/users/stats", headers=student_headers)
        assert response.status_code == 403


class TestProfile:
    @pytest.mark.asyncio
    async def test_profile_with_history(
        self, client: AsyncClient, student, student_headers, make_event, make_achievement,
    ):
        event = await make_event(title="Hackathon", points=250)
        await make_achievement(
            title="First Steps",
            description="Participate in your first event",
            requirement_type="events",
            requirement_value=1,
            points=50,
        )
        await client.post(f"/api/v1/events/{event.id}/participate", headers=student_headers)
        await client.post("/api/v1/achievements/check", headers=student_headers)

        response = await client.get(f"/api/v1/users/profile/{student.id}", headers=student_headers)

        assert response.status_code == 200
        profile = response.json()["data"]
        assert profile["total_points"] == 300
        assert profile["level_progress"] == {
            "level": 2,
            "points_into_level": 100,
            "points_for_level": 200,
            "next_level": 3,
        }
        assert [a["title"] for a in profile["achievements"]] == ["First Steps"]
        assert profile["events_participated"][0]["title"] == "Hackathon"
        assert profile["events_participated"][0]["points_earned"] == 250

    @pytest.mark.asyncio
    async def test_inactive_profile_not_found(self, client: AsyncClient, student_headers, make_user):
        gone = await make_user(is_active=False)
        response = await client.get(f"/api/v1/users/profile/{gone.id}", headers=student_headers)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User not found"}


class TestAdminEdits:
    @pytest.mark.asyncio
    async def test_update(self, client: AsyncClient, admin_headers, student):
        response = await client.put(
            f"/api/v1/users/{student.id}",
            headers=admin_headers,
            json={"name": "Alexander Johnson", "year": "4th Year"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User updated successfully"
        assert body["data"]["name"] == "Alexander Johnson"
        assert body["data"]["year"] == "4th Year"
        assert body["data"]["total_points"] == 0

    @pytest.mark.asyncio
    async def test_update_rejects_bad_year(self, client: AsyncClient, admin_headers, student):
        response = await client.put(
            f"/api/v1/users/{student.id}", headers=admin_headers, json={"year": "5th Year"},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_unknown_user(self, client: AsyncClient, admin_headers):
        response = await client.put("/api/v1/users/9999", headers=admin_headers, json={"name": "Nobody"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_soft_delete(self, client: AsyncClient, admin_headers, student, student_headers):
        response = await client.delete(f"/api/v1/users/{student.id}", headers=admin_headers)
        assert response.json() == {"success": True, "message": "User deactivated successfully"}

        me = await client.get("/api/v1/auth/me", headers=student_headers)
        assert me.status_code == 401

        listing = await client.get("/api/v1/users", params={"role": "student"}, headers=admin_headers)
        assert listing.json()["data"][0]["is_active"] is False
