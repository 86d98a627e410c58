"""
DevJournal Backend — Tags API Tests
=====================================

What we test:
    ✅ POST/PUT/DELETE /entries/{id}/tags return the updated entry
    ✅ tag set operations are owner only (403) and 404 for unknown entries
    ✅ invalid names are 400 on add/replace
    ✅ catalogue: create is idempotent, popular, prefix search, lookup, 404
    ✅ /tags/{name}/entries only lists public entries
"""

import pytest

pytestmark = pytest.mark.asyncio


async def create_entry(client, headers, **fields):
    response = await client.post(
        "/entries", json={"title": "Tagged entry", "content": "body", **fields}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


def names(entry):
    return [t["name"] for t in entry["tags"]]


class TestEntryTags:

    async def test_add_replace_remove(self, test_client, alice):
        entry = await create_entry(test_client, alice)
        url = f"/entries/{entry['id']}/tags"

        added = await test_client.post(url, json={"tags": ["JavaScript", "react"]}, headers=alice)
        assert added.status_code == 200
        assert names(added.json()) == ["javascript", "react"]

        again = await test_client.post(url, json={"tags": ["react", "hooks"]}, headers=alice)
        assert names(again.json()) == ["hooks", "javascript", "react"]

        replaced = await test_client.put(url, json={"tags": ["python"]}, headers=alice)
        assert names(replaced.json()) == ["python"]

        removed = await test_client.request(
            "DELETE", url, json={"tags": ["PYTHON", "not-there"]}, headers=alice
        )
        assert removed.status_code == 200
        assert names(removed.json()) == []

    async def test_replace_with_empty_list_clears(self, test_client, alice):
        entry = await create_entry(test_client, alice, tags=["a", "b"])
        response = await test_client.put(
            f"/entries/{entry['id']}/tags", json={"tags": []}, headers=alice
        )
        assert response.status_code == 200
        assert response.json()["tags"] == []

    async def test_repeated_add_is_idempotent(self, test_client, alice):
        entry = await create_entry(test_client, alice)
        url = f"/entries/{entry['id']}/tags"
        for _ in range(3):
            response = await test_client.post(url, json={"tags": ["same"]}, headers=alice)
            assert names(response.json()) == ["same"]

        catalogue = (await test_client.get("/tags")).json()
        assert [t["name"] for t in catalogue] == ["same"]

    async def test_non_owner_is_403_even_on_public_entry(self, test_client, alice, bob):
        entry = await create_entry(test_client, alice, isPublic=True, tags=["mine"])
        url = f"/entries/{entry['id']}/tags"

        assert (await test_client.post(url, json={"tags": ["x"]}, headers=bob)).status_code == 403
        assert (await test_client.put(url, json={"tags": []}, headers=bob)).status_code == 403
        remove = await test_client.request("DELETE", url, json={"tags": ["mine"]}, headers=bob)
        assert remove.status_code == 403

        unchanged = (await test_client.get(f"/entries/{entry['id']}")).json()
        assert names(unchanged) == ["mine"]

    async def test_unknown_entry_is_404(self, test_client, alice):
        response = await test_client.post(
            "/entries/00000000-0000-0000-0000-000000000000/tags",
            json={"tags": ["x"]},
            headers=alice,
        )
        assert response.status_code == 404

    async def test_anonymous_is_401(self, test_client, alice):
        entry = await create_entry(test_client, alice)
        response = await test_client.post(f"/entries/{entry['id']}/tags", json={"tags": ["x"]})
        assert response.status_code == 401

    @pytest.mark.parametrize("bad", [["has space"], ["x" * 51], [""], []])
    async def test_invalid_names_are_400(self, test_client, alice, bad):
        entry = await create_entry(test_client, alice)
        response = await test_client.post(
            f"/entries/{entry['id']}/tags", json={"tags": bad}, headers=alice
        )
        assert response.status_code == 400


class TestCatalogue:

    async def test_create_is_idempotent(self, test_client, alice):
        first = await test_client.post("/tags", json={"name": " Rust "}, headers=alice)
        second = await test_client.post("/tags", json={"name": "rust"}, headers=alice)

        assert first.status_code == second.status_code == 201
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["name"] == "rust"

    async def test_create_requires_auth(self, test_client):
        assert (await test_client.post("/tags", json={"name": "rust"})).status_code == 401

    async def test_popular_and_lookup(self, test_client, alice, bob):
        await create_entry(test_client, alice, tags=["python", "fastapi"])
        await create_entry(test_client, bob, tags=["python"])

        popular = (await test_client.get("/tags/popular?limit=1")).json()
        assert [(t["name"], t["entryCount"]) for t in popular] == [("python", 2)]

        tag = await test_client.get("/tags/FastAPI")
        assert tag.status_code == 200
        assert tag.json()["entryCount"] == 1

        assert (await test_client.get("/tags/missing")).status_code == 404

    async def test_search_by_prefix(self, test_client, alice):
        await create_entry(test_client, alice, tags=["react", "redux", "rust"])
        body = (await test_client.get("/tags/search?q=re")).json()
        assert [t["name"] for t in body] == ["react", "redux"]

    async def test_tag_entries_are_public_only(self, test_client, alice):
        await create_entry(test_client, alice, title="Open", isPublic=True, tags=["shared"])
        await create_entry(test_client, alice, title="Closed", tags=["shared"])

        body = (await test_client.get("/tags/shared/entries")).json()
        assert body["total"] == 1
        assert body["data"][0]["title"] == "Open"

    async def test_delete_detaches(self, test_client, alice):
        entry = await create_entry(test_client, alice, tags=["gone", "kept"])

        response = await test_client.delete("/tags/gone", headers=alice)
        assert response.status_code == 200
        assert response.json() == {"message": "Tag deleted successfully"}

        fresh = (await test_client.get(f"/entries/{entry['id']}", headers=alice)).json()
        assert names(fresh) == ["kept"]
        assert (await test_client.delete("/tags/gone", headers=alice)).status_code == 404
