"""Per-request interpreter isolation."""

from __future__ import annotations

import asyncio

import httpx


def test_concurrent_requests_never_share_request_data(client, register) -> None:
    register(
        "/echo-body",
        """
        async function POST(request) {
          await Promise.resolve();
          return { body: request.body };
        }
        """,
    )
    app = client.app

    async def fire() -> list[httpx.Response]:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://runbox.test") as async_client:
            return await asyncio.gather(
                *(async_client.post("/api/execute/echo-body", json={"n": n}) for n in range(8))
            )

    responses = asyncio.run(fire())

    assert [response.status_code for response in responses] == [200] * 8
    assert [response.json()["body"] for response in responses] == [{"n": n} for n in range(8)]


def test_globals_do_not_survive_between_requests(client, register) -> None:
    register(
        "/counter",
        """
        var hits = (typeof hits === "undefined" ? 0 : hits) + 1;
        globalThis.total = (globalThis.total || 0) + 1;
        function GET() { return { hits: hits, total: globalThis.total }; }
        """,
    )

    first = client.get("/api/execute/counter").json()
    second = client.get("/api/execute/counter").json()

    assert first == {"hits": 1, "total": 1}
    assert second == {"hits": 1, "total": 1}


def test_updates_take_effect_on_next_request(client, register) -> None:
    record = register("/versioned", 'function GET() { return "v1"; }', name="Versioned")
    assert client.get("/api/execute/versioned").json() == "v1"

    updated = client.put(
        f"/api/functions/{record['id']}",
        json={"name": "Versioned", "path": "/versioned", "code": 'function GET() { return "v2"; }'},
    )
    assert updated.status_code == 200

    assert client.get("/api/execute/versioned").json() == "v2"


def test_deleted_function_is_no_longer_executable(client, register) -> None:
    record = register("/ephemeral", 'function GET() { return "here"; }')
    assert client.get("/api/execute/ephemeral").status_code == 200

    client.delete(f"/api/functions/{record['id']}")

    assert client.get("/api/execute/ephemeral").status_code == 404
