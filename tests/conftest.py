import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from dashboard_service.config import Config
from dashboard_service.db import create_db_engine, init_db
from dashboard_service.main import create_app
from dashboard_service.storage import DashboardStore


class QuietConfig(Config):
    SEED_SAMPLE_DATA = False
    CHAT_REPLY_POLICY = "dashboard"
    CHAT_REPLY_OFFSET_SECONDS = 1.0


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def publish(self, *args):
        self.ops.append(("publish", args))

    def setex(self, *args):
        self.ops.append(("setex", args))

    def execute(self):
        return [getattr(self.client, name)(*args) for name, args in self.ops]


class FakeRedis:
    """Covers the handful of redis.Redis calls VitalsCache makes."""

    def __init__(self):
        self.values = {}
        self.published = []
        self.down = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("Connection refused")

    def get(self, key):
        self._check()
        return self.values.get(key)

    def setex(self, key, ttl, value):
        self._check()
        self.values[key] = value

    def publish(self, channel, message):
        self._check()
        self.published.append((channel, message))
        return 1

    def ping(self):
        self._check()
        return True

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture
def store():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield DashboardStore(engine)
    engine.dispose()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(store, fake_redis):
    app = create_app(QuietConfig, store=store, redis_client=fake_redis)
    with TestClient(app) as test_client:
        yield test_client
