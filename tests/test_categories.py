"""
Category endpoint tests: bare listing, listing with article counts,
and creation.
"""
import pytest
from httpx import AsyncClient

from conftest import article_payload


@pytest.mark.asyncio
async def test_list_categories_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/categories")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_list_categories(async_client: AsyncClient, category_ids):
    resp = await async_client.get("/api/v1/categories")
    categories = resp.json()
    assert [c["id"] for c in categories] == category_ids
    assert [c["name"] for c in categories] == ["Programming", "Travel", "Music"]
    assert all("count" not in c for c in categories)


@pytest.mark.asyncio
async def test_list_categories_with_counts(async_client: AsyncClient, auth_headers, category_ids):
    programming, travel, music = category_ids
    for categories in ([programming], [programming, travel], [programming]):
        resp = await async_client.post("/api/v1/articles", json=article_payload(categories), headers=auth_headers)
        assert resp.status_code == 201

    resp = await async_client.get("/api/v1/categories", params={"count": "true"})
    counts = {c["id"]: c["count"] for c in resp.json()}
    assert counts == {programming: 3, travel: 1, music: 0}


@pytest.mark.asyncio
async def test_duplicate_category_names_allowed(async_client: AsyncClient, auth_headers):
    for _ in range(2):
        resp = await async_client.post("/api/v1/categories", json={"name": "News"}, headers=auth_headers)
        assert resp.status_code == 201
    names = [c["name"] for c in (await async_client.get("/api/v1/categories")).json()]
    assert names == ["News", "News"]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"name": ""}, {"name": "x" * 31}])
async def test_create_category_invalid(async_client: AsyncClient, auth_headers, payload):
    resp = await async_client.post("/api/v1/categories", json=payload, headers=auth_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_category_requires_token(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/categories", json={"name": "News"})
    assert resp.status_code == 401
    assert (await async_client.get("/api/v1/categories")).json() == []


@pytest.mark.asyncio
async def test_create_category_requires_admin(async_client: AsyncClient, reader_headers):
    resp = await async_client.post("/api/v1/categories", json={"name": "News"}, headers=reader_headers)
    assert resp.status_code == 403
    assert (await async_client.get("/api/v1/categories")).json() == []
