import json
from pathlib import Path

import pytest
from twilio.base.exceptions import TwilioRestException

EVENTS_DIR = Path(__file__).parent / "events"

ACCOUNT_SID = "ACxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"
AUTH_TOKEN = "test-auth-token"


# ---------------------------------------------------------------------------
# Twilio client stubs
# ---------------------------------------------------------------------------
# Only the attribute chains the handlers walk are implemented.

class StubChannel:
    def __init__(self, configured_capacity, assigned_tasks=0, unique_name="chat", updates=None):
        self.task_channel_unique_name = unique_name
        self.configured_capacity = configured_capacity
        self.assigned_tasks = assigned_tasks
        self.updates = updates if updates is not None else []

    @property
    def available_capacity_percentage(self):
        if self.configured_capacity <= 0:
            return 0
        free = max(self.configured_capacity - self.assigned_tasks, 0)
        return int(free * 100 / self.configured_capacity)

    def update(self, capacity):
        self.updates.append(capacity)
        return StubChannel(capacity, self.assigned_tasks, self.task_channel_unique_name, self.updates)


class StubChannelList:
    def __init__(self, channels):
        self._channels = channels

    def list(self):
        return list(self._channels)


class StubWorker:
    def __init__(self, attributes, channels):
        self.attributes = json.dumps(attributes)
        self.worker_channels = StubChannelList(channels)


class StubTask:
    def __init__(self, sid):
        self.sid = sid


class StubFetcher:
    def __init__(self, result):
        self._result = result
        self.fetch_count = 0

    def fetch(self):
        self.fetch_count += 1
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class StubWorkspace:
    def __init__(self, client):
        self._client = client

    def workers(self, sid):
        self._client.requested_worker_sids.append(sid)
        return self._client.worker_fetcher

    def tasks(self, sid):
        self._client.requested_task_sids.append(sid)
        return StubFetcher(StubTask(sid))


class StubMessages:
    def __init__(self, sent):
        self._sent = sent

    def create(self, **kwargs):
        self._sent.append(kwargs)
        return type("StubMessage", (), {"sid": "IMxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"})()


class StubConversation:
    def __init__(self, sid, sent):
        self.sid = sid
        self.messages = StubMessages(sent)


class StubFlexConfiguration:
    def __init__(self, attributes):
        self.attributes = attributes

    def get(self):
        return StubFetcher(self)


class StubTwilioClient:
    def __init__(self, worker=None, flex_attributes=None):
        self.worker_fetcher = StubFetcher(
            worker if worker is not None else TwilioRestException(404, "/Workers/WKmissing")
        )
        self.requested_worker_sids = []
        self.requested_task_sids = []
        self.requested_workspace_sids = []
        self.sent_messages = []

        self.taskrouter = self
        self.v1 = self
        self.conversations = self
        self.flex_api = type("FlexApi", (), {})()
        self.flex_api.configuration = StubFlexConfiguration(flex_attributes or {})

    def workspaces(self, sid):
        self.requested_workspace_sids.append(sid)
        return StubWorkspace(self)

    # client.conversations.conversations(sid)
    def __call__(self, sid):
        return StubConversation(sid, self.sent_messages)


class StubResponse:
    def __init__(self, payload=None, status_code=200, json_error=False):
        self._payload = payload
        self.status_code = status_code
        self._json_error = json_error

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._json_error:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        import requests

        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Error")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def load_event():
    def _load_event(name):
        with open(EVENTS_DIR / name, "r", encoding="utf-8") as f:
            return json.load(f)

    return _load_event


@pytest.fixture
def use_twilio_client(monkeypatch):
    """Make every handler use the given stub client instead of building a real one."""

    def _use(client):
        monkeypatch.setattr(
            "flex_functions.utils.twilio_client.get_client",
            lambda: (client, {"account_sid": ACCOUNT_SID, "auth_token": AUTH_TOKEN}),
        )
        return client

    return _use


@pytest.fixture
def accept_flex_tokens(monkeypatch):
    tokens = []

    def fake_validate_token(token, account_sid, auth_token):
        tokens.append(token)
        return {"valid": True, "identity": "agent@example.org"}

    monkeypatch.setattr("flex_functions.utils.token_validator.validate_token", fake_validate_token)
    return tokens


@pytest.fixture
def missing_twilio_credentials(monkeypatch):
    """Load credentials for real, with TWILIO_SECRET_NAME unset; request after use_twilio_client fixtures."""
    from flex_functions.utils import twilio_client

    monkeypatch.delenv("TWILIO_SECRET_NAME", raising=False)
    monkeypatch.setattr(twilio_client, "get_client", twilio_client.build_client)
