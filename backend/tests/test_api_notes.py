"""Tests for the notes endpoints."""

from httpx import AsyncClient

from notescafe.db import InMemoryDocumentStore

async def test_search_notes(client: AsyncClient, store: InMemoryDocumentStore, auth_headers: dict[str, str]) -> None:
    await store.set("notes/n1", {"title": "Fundamental Rights", "tags": ["polity"], "userId": "user-1", "isActive": True})
    await store.set("notes/n2", {"title": "Monsoon", "tags": ["geography"], "userId": "user-1", "isActive": True})
    await store.set("notes/n3", {"title": "Directive Principles", "userId": "user-2", "isActive": True})

    everything = await client.get("/api/notes", headers=auth_headers)
    assert {note["id"] for note in everything.json()} == {"n1", "n2"}

    polity = await client.get("/api/notes", params={"q": "POLITY"}, headers=auth_headers)
    assert polity.status_code == 200
    assert polity.json() == [
        {"id": "n1", "title": "Fundamental Rights", "tags": ["polity"], "userId": "user-1", "isActive": True}
    ]


async def test_get_note(client: AsyncClient, store: InMemoryDocumentStore, auth_headers: dict[str, str]) -> None:
    await store.set("notes/n1", {"title": "Fundamental Rights", "content": "Articles 12-35"})

    response = await client.get("/api/notes/n1", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"id": "n1", "title": "Fundamental Rights", "content": "Articles 12-35"}


async def test_get_missing_note(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.get("/api/notes/missing", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "not-found"


async def test_notes_require_session(client: AsyncClient) -> None:
    assert (await client.get("/api/notes")).status_code == 401
