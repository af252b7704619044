"""HTTP surface: routes, status codes, ownership scoping, principal handling."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from tests.factories import Tree, principal


class TestPrincipal:
    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client: AsyncClient, tree: Tree):
        response = await client.get("/api/v1/categories")
        assert response.status_code == 401
        assert response.json() == {"detail": "Missing principal"}

    @pytest.mark.asyncio
    async def test_malformed_header_is_401(self, client: AsyncClient, tree: Tree):
        response = await client.get("/api/v1/categories", headers={"X-Profile-Id": "abc"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_profile_is_401(self, client: AsyncClient, tree: Tree):
        response = await client.get("/api/v1/categories", headers={"X-Profile-Id": "999999"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_out_of_range_header_is_401(self, client: AsyncClient, tree: Tree):
        for raw in (str(2**70), "0", "-3"):
            response = await client.get("/api/v1/categories", headers={"X-Profile-Id": raw})
            assert response.status_code == 401
            assert response.json() == {"detail": "Invalid principal"}


class TestProfiles:
    @pytest.mark.asyncio
    async def test_create_and_fetch_me(self, client: AsyncClient, db_engine):
        response = await client.post(
            "/api/v1/profiles", json={"name": "Lin", "email": "Lin@Example.com", "bio": "runner"}
        )
        assert response.status_code == 201
        created = response.json()
        assert created["email"] == "lin@example.com"
        assert created["total_xp"] == 0
        assert created["total_level"] == 1

        me = await client.get("/api/v1/profiles/me", headers={"X-Profile-Id": str(created["id"])})
        assert me.status_code == 200
        assert me.json()["bio"] == "runner"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_400(self, client: AsyncClient, tree: Tree):
        response = await client.post("/api/v1/profiles", json={"name": "Ada", "email": "ADA@example.com"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_invalid_body_is_422(self, client: AsyncClient, db_engine):
        response = await client.post("/api/v1/profiles", json={"name": "", "email": "not-an-email"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_public_profile_hides_email(self, client: AsyncClient, tree: Tree, other_tree: Tree):
        response = await client.get(f"/api/v1/profiles/{other_tree.profile.id}")
        assert response.status_code == 200
        assert "email" not in response.json()

        listing = await client.get("/api/v1/profiles")
        assert [p["name"] for p in listing.json()] == ["Ada", "Grace"]

    @pytest.mark.asyncio
    async def test_update_and_delete_me(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)
        response = await client.patch("/api/v1/profiles/me", json={"bio": "  learning  "}, headers=headers)
        assert response.status_code == 200
        assert response.json()["bio"] == "learning"

        response = await client.delete("/api/v1/profiles/me", headers=headers)
        assert response.status_code == 204
        assert (await client.get("/api/v1/profiles/me", headers=headers)).status_code == 401
        assert (await client.get(f"/api/v1/profiles/{tree.profile.id}")).status_code == 404


class TestSkillTreeRoutes:
    @pytest.mark.asyncio
    async def test_build_tree_over_http(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)

        category = await client.post("/api/v1/categories", json={"name": "Languages"}, headers=headers)
        assert category.status_code == 201
        category_id = category.json()["id"]
        assert category.json()["level"] == 1

        skill = await client.post(
            "/api/v1/skills", json={"name": "Japanese", "category_id": category_id}, headers=headers
        )
        assert skill.status_code == 201
        skill_id = skill.json()["id"]

        sub_skill = await client.post(
            "/api/v1/sub-skills", json={"name": "Kanji", "skill_id": skill_id}, headers=headers
        )
        sub_skill_id = sub_skill.json()["id"]

        challenge = await client.post(
            "/api/v1/challenges", json={"name": "Learn 50 kanji", "sub_skill_id": sub_skill_id}, headers=headers
        )
        assert challenge.status_code == 201
        assert challenge.json()["xp_reward"] == 10

        full = await client.get(f"/api/v1/categories/{category_id}", headers=headers)
        assert full.status_code == 200
        body = full.json()
        assert body["skills"][0]["sub_skills"][0]["challenges"][0]["name"] == "Learn 50 kanji"

        listed = await client.get("/api/v1/categories", headers=headers)
        assert [c["name"] for c in listed.json()] == ["Fitness", "Languages"]

        filtered = await client.get(f"/api/v1/skills?category_id={category_id}", headers=headers)
        assert [s["name"] for s in filtered.json()] == ["Japanese"]

    @pytest.mark.asyncio
    async def test_blank_name_is_400(self, client: AsyncClient, tree: Tree):
        response = await client.post("/api/v1/categories", json={"name": "   "}, headers=principal(tree.profile))
        assert response.status_code == 400
        assert response.json() == {"detail": "Name is required"}

    @pytest.mark.asyncio
    async def test_zero_xp_reward_is_422(self, client: AsyncClient, tree: Tree):
        response = await client.post(
            "/api/v1/challenges",
            json={"name": "Free XP", "sub_skill_id": tree.sub_skill.id, "xp_reward": 0},
            headers=principal(tree.profile),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)
        response = await client.patch(
            f"/api/v1/challenges/{tree.challenge.id}", json={"xp_reward": 40}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["xp_reward"] == 40

        response = await client.delete(f"/api/v1/sub-skills/{tree.sub_skill.id}", headers=headers)
        assert response.status_code == 204
        response = await client.get(f"/api/v1/challenges/{tree.challenge.id}", headers=headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("path", "attr"),
        [
            ("/api/v1/categories/{}", "category"),
            ("/api/v1/skills/{}", "skill"),
            ("/api/v1/sub-skills/{}", "sub_skill"),
            ("/api/v1/challenges/{}", "challenge"),
        ],
    )
    async def test_foreign_ids_are_404(self, client: AsyncClient, tree: Tree, other_tree: Tree, path, attr):
        url = path.format(getattr(other_tree, attr).id)
        headers = principal(tree.profile)

        assert (await client.get(url, headers=headers)).status_code == 404
        assert (await client.patch(url, json={"name": "Mine now"}, headers=headers)).status_code == 404
        assert (await client.delete(url, headers=headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_attach_to_foreign_parent(self, client: AsyncClient, tree: Tree, other_tree: Tree):
        response = await client.post(
            "/api/v1/skills",
            json={"name": "Sneaky", "category_id": other_tree.category.id},
            headers=principal(tree.profile),
        )
        assert response.status_code == 404
        assert response.json() == {"detail": "Category not found"}

    @pytest.mark.asyncio
    async def test_level_policy(self, client: AsyncClient, tree: Tree):
        response = await client.get("/api/v1/levels", headers=principal(tree.profile))
        assert response.status_code == 200
        assert {e["entity"]: e["xp_per_level"] for e in response.json()["levels"]} == {
            "skill": 100,
            "category": 200,
            "profile": 100,
        }


class TestAchievementRoutes:
    @pytest.mark.asyncio
    async def test_complete_challenge(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)
        for _ in range(3):
            await client.post("/api/v1/achievements", json={"challenge_id": tree.challenge.id}, headers=headers)

        response = await client.post(
            "/api/v1/achievements",
            json={"challenge_id": tree.challenge.id, "notes": "fourth"},
            headers=headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["notes"] == "fourth"
        assert data["challenge"]["sub_skill"]["skill"]["category"]["id"] == tree.category.id
        awards = {a["entity"]: a for a in data["xp_awarded"]}
        assert awards["skill"]["xp"] == 100
        assert awards["skill"]["level"] == 2
        assert awards["skill"]["leveled_up"] is True
        assert awards["category"]["level"] == 1

        skill = await client.get(f"/api/v1/skills/{tree.skill.id}", headers=headers)
        assert skill.json()["xp"] == 100

        me = await client.get("/api/v1/profiles/me", headers=headers)
        assert me.json()["total_xp"] == 200
        assert me.json()["total_level"] == 3

        listed = await client.get(
            f"/api/v1/achievements?challenge_id={tree.challenge.id}", headers=headers
        )
        assert len(listed.json()) == 4

    @pytest.mark.asyncio
    async def test_foreign_challenge_is_404(self, client: AsyncClient, tree: Tree, other_tree: Tree):
        response = await client.post(
            "/api/v1/achievements",
            json={"challenge_id": other_tree.challenge.id},
            headers=principal(tree.profile),
        )
        assert response.status_code == 404
        assert response.json() == {"detail": "Challenge not found"}

    @pytest.mark.asyncio
    async def test_edit_and_delete_keeps_xp(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)
        created = await client.post(
            "/api/v1/achievements", json={"challenge_id": tree.challenge.id}, headers=headers
        )
        achievement_id = created.json()["id"]

        response = await client.patch(
            f"/api/v1/achievements/{achievement_id}", json={"notes": "edited"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["notes"] == "edited"

        response = await client.delete(f"/api/v1/achievements/{achievement_id}", headers=headers)
        assert response.status_code == 204
        assert (await client.get(f"/api/v1/achievements/{achievement_id}", headers=headers)).status_code == 404

        skill = await client.get(f"/api/v1/skills/{tree.skill.id}", headers=headers)
        assert skill.json()["xp"] == 25

    @pytest.mark.asyncio
    async def test_newest_first_across_offsets(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)
        # 10:00+05:00 is 05:00 UTC, an hour before the second one.
        earlier = await client.post(
            "/api/v1/achievements",
            json={"challenge_id": tree.challenge.id, "completed_at": "2026-01-01T10:00:00+05:00"},
            headers=headers,
        )
        later = await client.post(
            "/api/v1/achievements",
            json={"challenge_id": tree.challenge.id, "completed_at": "2026-01-01T06:00:00+00:00"},
            headers=headers,
        )

        listed = (await client.get("/api/v1/achievements", headers=headers)).json()
        assert [a["id"] for a in listed] == [later.json()["id"], earlier.json()["id"]]
        assert datetime.fromisoformat(listed[1]["completed_at"]) == datetime(
            2026, 1, 1, 5, tzinfo=timezone.utc
        )

        fetched = await client.get(f"/api/v1/achievements/{earlier.json()['id']}", headers=headers)
        assert datetime.fromisoformat(fetched.json()["completed_at"]) == datetime(
            2026, 1, 1, 5, tzinfo=timezone.utc
        )

    @pytest.mark.asyncio
    async def test_edit_normalises_completed_at(self, client: AsyncClient, tree: Tree):
        headers = principal(tree.profile)
        created = await client.post(
            "/api/v1/achievements", json={"challenge_id": tree.challenge.id}, headers=headers
        )
        response = await client.patch(
            f"/api/v1/achievements/{created.json()['id']}",
            json={"completed_at": "2026-03-01T12:30:00-02:00"},
            headers=headers,
        )
        assert response.status_code == 200
        assert datetime.fromisoformat(response.json()["completed_at"]) == datetime(
            2026, 3, 1, 14, 30, tzinfo=timezone.utc
        )


class TestIdBounds:
    @pytest.mark.asyncio
    async def test_oversized_challenge_id_is_422(self, client: AsyncClient, tree: Tree):
        response = await client.post(
            "/api/v1/achievements", json={"challenge_id": 2**70}, headers=principal(tree.profile)
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_oversized_parent_id_is_422(self, client: AsyncClient, tree: Tree):
        response = await client.post(
            "/api/v1/skills",
            json={"category_id": 2**31, "name": "Swimming"},
            headers=principal(tree.profile),
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        [
            "/api/v1/categories/{id}",
            "/api/v1/skills/{id}",
            "/api/v1/sub-skills/{id}",
            "/api/v1/challenges/{id}",
            "/api/v1/achievements/{id}",
            "/api/v1/profiles/{id}",
            "/api/v1/skills?category_id={id}",
            "/api/v1/achievements?challenge_id={id}",
        ],
    )
    async def test_oversized_path_and_query_ids_are_422(self, client: AsyncClient, tree: Tree, path):
        for bad in (2**40, 0):
            response = await client.get(path.format(id=bad), headers=principal(tree.profile))
            assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_largest_id_is_plain_404(self, client: AsyncClient, tree: Tree):
        response = await client.get(f"/api/v1/categories/{2**31 - 1}", headers=principal(tree.profile))
        assert response.status_code == 404
