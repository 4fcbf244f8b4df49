"""Integration tests for the payload endpoints."""
import base64
import logging

import pytest
from httpx import ASGITransport, AsyncClient

from blobvault.errors import StorageError
from blobvault.main import create_app
from blobvault.store import BlobStore


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.mark.asyncio
async def test_set_then_get_round_trip(client: AsyncClient, store: BlobStore) -> None:
    """A registered user can store a payload and fetch it back."""

    await store.register("alice", "secret")

    response = await client.post(
        "/setData",
        json={"username": "alice", "password": "secret", "content": b64(b"\x01\x02")},
    )
    assert response.status_code == 200
    assert response.json() == {"code": 200, "msg": "ok"}

    response = await client.post("/getData", json={"username": "alice", "password": "secret"})
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200
    assert base64.b64decode(body["data"]) == b"\x01\x02"


@pytest.mark.asyncio
async def test_get_never_written_returns_empty_string(client: AsyncClient, store: BlobStore) -> None:
    await store.register("bob", "pw")

    response = await client.post("/getData", json={"username": "bob", "password": "pw"})
    assert response.status_code == 200
    assert response.json() == {"code": 200, "msg": "ok", "data": ""}


@pytest.mark.asyncio
async def test_bad_password_and_unknown_user_look_the_same(client: AsyncClient, store: BlobStore) -> None:
    await store.register("alice", "secret")

    wrong = await client.post("/getData", json={"username": "alice", "password": "wrong"})
    ghost = await client.post("/getData", json={"username": "ghost", "password": "wrong"})

    assert wrong.status_code == ghost.status_code == 400
    assert wrong.json() == ghost.json() == {"code": 400, "msg": "invalid username or password"}


@pytest.mark.asyncio
async def test_set_with_bad_password_is_rejected(client: AsyncClient, store: BlobStore) -> None:
    await store.register("alice", "secret")
    await store.verified_write("alice", "secret", b"keep")

    response = await client.post(
        "/setData", json={"username": "alice", "password": "wrong", "content": b64(b"evil")}
    )
    assert response.status_code == 400
    assert "data" not in response.json()
    assert (await store.verified_read("alice", "secret")).payload == b"keep"


@pytest.mark.asyncio
async def test_set_rejects_undecodable_content(client: AsyncClient, store: BlobStore) -> None:
    await store.register("alice", "secret")

    response = await client.post(
        "/setData", json={"username": "alice", "password": "secret", "content": "not base64!!"}
    )
    assert response.status_code == 400
    assert response.json() == {"code": 400, "msg": "base64 decode error"}


@pytest.mark.asyncio
async def test_set_requires_content(client: AsyncClient, store: BlobStore) -> None:
    await store.register("alice", "secret")

    response = await client.post("/setData", json={"username": "alice", "password": "secret"})
    assert response.status_code == 400
    assert response.json() == {"code": 400, "msg": "invalid request"}


@pytest.mark.asyncio
async def test_malformed_json_is_a_soft_failure(client: AsyncClient) -> None:
    response = await client.post(
        "/getData", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["code"] == 400


@pytest.mark.asyncio
async def test_account_management_is_not_routed(client: AsyncClient) -> None:
    for path in ("/register", "/adduser", "/deluser", "/list", "/passwd"):
        response = await client.post(path, json={"username": "x", "password": "y"})
        assert response.status_code in (404, 405)


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class FailingStore:
    """Stands in for a store whose database has gone away."""

    async def verified_read(self, username: str, password: str):
        raise StorageError("disk /var/lib/blobvault is gone")

    async def verified_write(self, username: str, password: str, payload: bytes):
        raise RuntimeError("unexpected")


@pytest.mark.asyncio
async def test_storage_failure_is_opaque() -> None:
    transport = ASGITransport(app=create_app(FailingStore()), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post("/getData", json={"username": "a", "password": "b"})
        assert response.status_code == 500
        assert response.json() == {"code": 500, "msg": "internal error"}
        assert "/var/lib" not in response.text

        response = await client.post(
            "/setData", json={"username": "a", "password": "b", "content": b64(b"x")}
        )
        assert response.status_code == 500
        assert response.json() == {"code": 500, "msg": "internal error"}


@pytest.mark.asyncio
async def test_malformed_request_log_omits_password(
    client: AsyncClient, store: BlobStore, caplog: pytest.LogCaptureFixture
) -> None:
    await store.register("alice", "s3cr3t-pw")

    with caplog.at_level(logging.WARNING, logger="blobvault"):
        response = await client.post("/setData", json={"username": "alice", "password": "s3cr3t-pw"})
        await client.post("/getData", json={"username": "alice", "password": ["s3cr3t-pw"]})

    assert response.status_code == 400
    assert "malformed request" in caplog.text
    assert "s3cr3t-pw" not in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        b'{"username": "alice", "password": "\\ud800"}',
        b'{"username": "\\ud800", "password": "secret"}',
    ],
)
async def test_unencodable_credentials_are_a_soft_failure(
    client: AsyncClient, store: BlobStore, body: bytes
) -> None:
    await store.register("alice", "secret")

    response = await client.post("/getData", content=body, headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["code"] == 400
    assert "UTF-8" in response.json()["msg"]
