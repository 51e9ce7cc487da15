import json

import pytest
from aiohttp import ClientError

from myops.tasksync import (
    ConfigurationError,
    MalformedResponseError,
    NetworkError,
    RemoteTaskStore,
    ServerReportedError,
    SyncConfig,
    TaskRecord,
    WriteStatus,
)

URL = "https://script.example/exec"


class DummyResp:
    def __init__(self, status, text=""):
        self.status = status
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self):
        return self._text


class Session:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.gets = []
        self.posts = []
        self.closed = False

    def get(self, url, params=None, allow_redirects=True):
        self.gets.append((url, params))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def post(self, url, data=None, headers=None):
        self.posts.append((url, json.loads(data), headers))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else DummyResp(200)

    async def close(self):
        self.closed = True


def make_store(session, token="secret"):
    return RemoteTaskStore(URL, token, session=session, timeout=5)


@pytest.mark.asyncio
async def test_fetch_parses_array_and_sends_query():
    payload = [
        {"id": "a", "date": "2024-01-01", "description": "Alpha", "priority": "Low", "status": "Done", "xpAwarded": 10},
        "junk",
    ]
    session = Session([DummyResp(200, json.dumps(payload))])

    records = await make_store(session).async_fetch_all()

    assert records == [
        TaskRecord(id="a", date="2024-01-01", description="Alpha", priority="Low", status="Done", xp_awarded=10)
    ]
    url, params = session.gets[0]
    assert url == URL
    assert params["token"] == "secret"
    assert params["module"] == "tasks"
    assert params["t"].isdigit()


@pytest.mark.asyncio
async def test_fetch_error_payload_raises_server_error():
    session = Session([DummyResp(200, json.dumps({"status": "error", "message": "Invalid token"}))])

    with pytest.raises(ServerReportedError, match="Invalid token") as info:
        await make_store(session).async_fetch_all()
    assert info.value.reason == "server_error"


@pytest.mark.asyncio
async def test_fetch_invalid_json_is_malformed():
    session = Session([DummyResp(200, "<html>login</html>")])

    with pytest.raises(MalformedResponseError, match="Invalid response from server."):
        await make_store(session).async_fetch_all()


@pytest.mark.asyncio
async def test_fetch_non_array_is_malformed():
    session = Session([DummyResp(200, json.dumps({"rows": []}))])

    with pytest.raises(MalformedResponseError):
        await make_store(session).async_fetch_all()


class UndecodableResp(DummyResp):
    async def text(self):
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")


@pytest.mark.asyncio
async def test_fetch_undecodable_body_is_malformed():
    session = Session([UndecodableResp(200)])

    with pytest.raises(MalformedResponseError, match="Invalid response from server.") as info:
        await make_store(session).async_fetch_all()
    assert info.value.reason == "malformed_response"


@pytest.mark.asyncio
async def test_fetch_http_error_raises_network_error():
    session = Session([DummyResp(503)])

    with pytest.raises(NetworkError, match="HTTP 503"):
        await make_store(session).async_fetch_all()


@pytest.mark.asyncio
async def test_fetch_transport_error_raises_network_error():
    session = Session(error=ClientError("refused"))

    with pytest.raises(NetworkError) as info:
        await make_store(session).async_fetch_all()
    assert isinstance(info.value.__cause__, ClientError)


@pytest.mark.asyncio
async def test_missing_token_fails_before_request():
    session = Session()
    store = make_store(session, token="  ")

    with pytest.raises(ConfigurationError, match="API token required"):
        await store.async_fetch_all()
    with pytest.raises(ConfigurationError):
        await store.async_delete("a")
    assert session.gets == []
    assert session.posts == []


@pytest.mark.asyncio
async def test_create_posts_entry_and_is_only_accepted():
    session = Session()
    store = make_store(session)

    receipt = await store.async_create(TaskRecord(date="2024-01-02", description="New"))

    assert receipt.status is WriteStatus.ACCEPTED
    assert not receipt.confirmed
    assert receipt.task_id
    _url, body, headers = session.posts[0]
    assert body["action"] == "create"
    assert body["module"] == "tasks"
    assert body["token"] == "secret"
    assert body["entry"]["id"] == receipt.task_id
    assert body["entry"]["description"] == "New"
    assert headers["Content-Type"] == "text/plain;charset=utf-8"


@pytest.mark.asyncio
async def test_delete_posts_id_only():
    session = Session()

    await make_store(session).async_delete("a")

    assert session.posts[0][1]["entry"] == {"id": "a"}
    assert session.posts[0][1]["action"] == "delete"


@pytest.mark.asyncio
async def test_write_http_status_is_not_interpreted():
    session = Session([DummyResp(500)])

    receipt = await make_store(session).async_update(TaskRecord(id="a"))

    assert receipt.status is WriteStatus.ACCEPTED


@pytest.mark.asyncio
async def test_write_transport_error_raises_network_error():
    session = Session(error=ClientError("reset"))

    with pytest.raises(NetworkError):
        await make_store(session).async_update(TaskRecord(id="a"))


@pytest.mark.asyncio
async def test_close_leaves_borrowed_session_open():
    session = Session()
    store = make_store(session)
    await store.async_close()
    assert not session.closed


def test_from_config_uses_settings():
    config = SyncConfig.from_options(
        {"mode": "live", "endpoint_url": f" {URL} ", "api_token": "tok", "request_timeout": 12}
    )
    store = RemoteTaskStore.from_config(config)
    assert store.endpoint_url == URL
    assert store.api_token == "tok"
    store.check_ready()
