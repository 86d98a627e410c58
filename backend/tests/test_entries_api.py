"""
DevJournal Backend — Entries API Tests
========================================

End-to-end through the ASGI app with a fake identity provider and an
in-memory database.

What we test:
    ✅ create (201, private by default, tags attached)
    ✅ private entries are 404 for strangers and anonymous callers, never 403
    ✅ PATCH/DELETE: 403 for non-owners, 401 for anonymous callers
    ✅ publishing an entry makes it visible to others
    ✅ pagination, isPublic and search filters on /entries/my
    ✅ public feed carries the author and hides private snippets
    ✅ summaries: owner only, stored on the entry, failures are 500
"""

import pytest

pytestmark = pytest.mark.asyncio


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def create_entry(client, headers, **fields):
    body = {"title": "My entry", "content": "# Hello\nSome markdown.", **fields}
    response = await client.post("/entries", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreate:

    async def test_create_defaults_to_private(self, test_client, alice):
        entry = await create_entry(test_client, alice)

        assert entry["isPublic"] is False
        assert entry["userId"] == "sub-alice"
        assert entry["summary"] is None
        assert entry["tags"] == []
        assert entry["snippets"] == []
        assert "createdAt" in entry and "updatedAt" in entry

    async def test_create_with_tags_normalizes_names(self, test_client, alice):
        entry = await create_entry(test_client, alice, tags=["Python", " async ", "python"])
        assert [t["name"] for t in entry["tags"]] == ["async", "python"]

    async def test_create_requires_auth(self, test_client):
        response = await test_client.post("/entries", json={"title": "t", "content": "c"})
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.json()["message"] == "No authorization header provided"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_invalid_token_is_401(self, test_client):
        response = await test_client.post(
            "/entries", json={"title": "t", "content": "c"}, headers=bearer("forged")
        )
        assert response.status_code == 401

    async def test_missing_title_is_400(self, test_client, alice):
        response = await test_client.post("/entries", json={"content": "c"}, headers=alice)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["errors"][0]["field"] == "title"

    async def test_invalid_tag_name_is_400(self, test_client, alice):
        response = await test_client.post(
            "/entries", json={"title": "t", "content": "c", "tags": ["no spaces"]}, headers=alice
        )
        assert response.status_code == 400


class TestVisibility:

    async def test_private_entry_hidden_from_others(self, test_client, alice, bob):
        entry = await create_entry(test_client, alice, isPublic=False)

        as_bob = await test_client.get(f"/entries/{entry['id']}", headers=bob)
        anonymous = await test_client.get(f"/entries/{entry['id']}")
        as_alice = await test_client.get(f"/entries/{entry['id']}", headers=alice)

        assert as_bob.status_code == 404
        assert anonymous.status_code == 404
        assert as_alice.status_code == 200

    async def test_unknown_id_matches_hidden_response(self, test_client, alice, bob):
        entry = await create_entry(test_client, alice)
        hidden = await test_client.get(f"/entries/{entry['id']}", headers=bob)
        missing = await test_client.get(
            "/entries/00000000-0000-0000-0000-000000000000", headers=bob
        )
        assert hidden.status_code == missing.status_code == 404
        assert hidden.json()["error"] == missing.json()["error"] == "not_found"

    async def test_publishing_makes_entry_visible(self, test_client, alice, bob):
        entry = await create_entry(test_client, alice, title="Going public")
        assert (await test_client.get(f"/entries/{entry['id']}", headers=bob)).status_code == 404

        patched = await test_client.patch(
            f"/entries/{entry['id']}", json={"isPublic": True}, headers=alice
        )
        assert patched.status_code == 200
        assert patched.json()["isPublic"] is True

        as_bob = await test_client.get(f"/entries/{entry['id']}", headers=bob)
        assert as_bob.status_code == 200
        assert as_bob.json()["title"] == "Going public"
        assert as_bob.json()["user"]["username"] == "alice"

    async def test_invalid_token_on_public_read_is_anonymous(self, test_client, alice):
        entry = await create_entry(test_client, alice, isPublic=True)
        response = await test_client.get(f"/entries/{entry['id']}", headers=bearer("forged"))
        assert response.status_code == 200


class TestWriteGate:

    @pytest.mark.parametrize("is_public", [True, False])
    async def test_non_owner_patch_is_403(self, test_client, alice, bob, is_public):
        entry = await create_entry(test_client, alice, isPublic=is_public)
        response = await test_client.patch(
            f"/entries/{entry['id']}", json={"title": "hijacked"}, headers=bob
        )
        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to access this entry"

    async def test_non_owner_delete_is_403(self, test_client, alice, bob):
        entry = await create_entry(test_client, alice)
        response = await test_client.delete(f"/entries/{entry['id']}", headers=bob)
        assert response.status_code == 403

    async def test_anonymous_patch_and_delete_are_401(self, test_client, alice):
        entry = await create_entry(test_client, alice, isPublic=True)
        patch = await test_client.patch(f"/entries/{entry['id']}", json={"title": "x"})
        delete = await test_client.delete(f"/entries/{entry['id']}")
        assert patch.status_code == 401
        assert delete.status_code == 401

    async def test_patch_missing_entry_is_404(self, test_client, alice):
        response = await test_client.patch(
            "/entries/00000000-0000-0000-0000-000000000000", json={"title": "x"}, headers=alice
        )
        assert response.status_code == 404

    async def test_owner_update_and_delete(self, test_client, alice):
        entry = await create_entry(test_client, alice)

        updated = await test_client.patch(
            f"/entries/{entry['id']}",
            json={"title": "Renamed", "summary": "Manual summary"},
            headers=alice,
        )
        assert updated.status_code == 200
        assert updated.json()["title"] == "Renamed"
        assert updated.json()["summary"] == "Manual summary"
        assert updated.json()["content"] == entry["content"]

        deleted = await test_client.delete(f"/entries/{entry['id']}", headers=alice)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Entry deleted successfully"}
        assert (await test_client.get(f"/entries/{entry['id']}", headers=alice)).status_code == 404

    async def test_delete_keeps_linked_snippets(self, test_client, alice):
        entry = await create_entry(test_client, alice)
        snippet = await test_client.post(
            "/snippets",
            json={"title": "s", "code": "print(1)", "language": "python", "entryId": entry["id"]},
            headers=alice,
        )
        assert snippet.status_code == 201

        await test_client.delete(f"/entries/{entry['id']}", headers=alice)

        survivor = await test_client.get(f"/snippets/{snippet.json()['id']}", headers=alice)
        assert survivor.status_code == 200
        assert survivor.json()["entryId"] is None


class TestListing:

    async def test_my_entries_pagination(self, test_client, alice, bob):
        for i in range(5):
            await create_entry(test_client, alice, title=f"Entry {i}")
        await create_entry(test_client, bob, title="Not mine")

        response = await test_client.get("/entries/my?page=1&limit=2", headers=alice)
        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["total"] == 5
        assert body["totalPages"] == 3
        assert body["page"] == 1 and body["limit"] == 2
        assert [e["title"] for e in body["data"]] == ["Entry 4", "Entry 3"]

    async def test_my_entries_filters(self, test_client, alice):
        await create_entry(test_client, alice, title="Public Python", isPublic=True)
        await create_entry(test_client, alice, title="Private Python")
        await create_entry(test_client, alice, title="Private Rust")

        public = (await test_client.get("/entries/my?isPublic=true", headers=alice)).json()
        assert [e["title"] for e in public["data"]] == ["Public Python"]

        searched = (await test_client.get("/entries/my?search=python", headers=alice)).json()
        assert searched["total"] == 2

    async def test_limit_above_max_is_rejected(self, test_client, alice):
        response = await test_client.get("/entries/my?limit=51", headers=alice)
        assert response.status_code == 400

    async def test_my_entries_requires_auth(self, test_client):
        assert (await test_client.get("/entries/my")).status_code == 401

    async def test_public_feed(self, test_client, alice, bob):
        await create_entry(test_client, alice, title="Alice public", isPublic=True)
        await create_entry(test_client, alice, title="Alice private")
        await create_entry(test_client, bob, title="Bob public", isPublic=True)

        body = (await test_client.get("/entries")).json()
        assert [e["title"] for e in body["data"]] == ["Bob public", "Alice public"]
        assert body["data"][1]["user"] == {
            "id": "sub-alice",
            "name": "Alice Adams",
            "username": "alice",
            "avatar": None,
        }

    async def test_public_feed_hides_private_snippets(self, test_client, alice):
        entry = await create_entry(test_client, alice, isPublic=True)
        for title, public in [("shown", True), ("hidden", False)]:
            await test_client.post(
                "/snippets",
                json={
                    "title": title,
                    "code": "x = 1",
                    "language": "python",
                    "isPublic": public,
                    "entryId": entry["id"],
                },
                headers=alice,
            )

        feed = (await test_client.get("/entries")).json()
        assert [s["title"] for s in feed["data"][0]["snippets"]] == ["shown"]

        own = (await test_client.get(f"/entries/{entry['id']}", headers=alice)).json()
        assert sorted(s["title"] for s in own["snippets"]) == ["hidden", "shown"]

    async def test_search_public(self, test_client, alice):
        await create_entry(test_client, alice, title="FastAPI tips", isPublic=True)
        await create_entry(test_client, alice, title="Secret FastAPI", isPublic=False)
        await create_entry(test_client, alice, title="Cooking", isPublic=True)

        body = (await test_client.get("/entries/search?q=fastapi")).json()
        assert [e["title"] for e in body["data"]] == ["FastAPI tips"]

    async def test_user_public_entries(self, test_client, alice):
        await create_entry(test_client, alice, title="Shared", isPublic=True)
        await create_entry(test_client, alice, title="Hidden")

        body = (await test_client.get("/users/sub-alice/entries")).json()
        assert [e["title"] for e in body["data"]] == ["Shared"]
        assert (await test_client.get("/users/nobody/entries")).status_code == 404


class TestSummarize:

    async def test_owner_gets_summary_stored(self, test_client, alice, summarizer):
        entry = await create_entry(test_client, alice, content="Long markdown text")

        response = await test_client.post(f"/entries/{entry['id']}/summarize", headers=alice)
        assert response.status_code == 201
        assert response.json()["summary"] == summarizer.summary
        assert summarizer.calls == ["Long markdown text"]

        again = (await test_client.get(f"/entries/{entry['id']}", headers=alice)).json()
        assert again["summary"] == summarizer.summary

    async def test_public_entry_of_someone_else_is_403(self, test_client, alice, bob, summarizer):
        entry = await create_entry(test_client, alice, isPublic=True)
        response = await test_client.post(f"/entries/{entry['id']}/summarize", headers=bob)
        assert response.status_code == 403
        assert summarizer.calls == []

    async def test_summarizer_failure_is_500_and_keeps_old_summary(
        self, test_client, alice, summarizer
    ):
        entry = await create_entry(test_client, alice, summary="Old")
        summarizer.fail = True

        response = await test_client.post(f"/entries/{entry['id']}/summarize", headers=alice)
        assert response.status_code == 500
        assert response.json()["error"] == "llm_service_error"

        unchanged = (await test_client.get(f"/entries/{entry['id']}", headers=alice)).json()
        assert unchanged["summary"] == "Old"
