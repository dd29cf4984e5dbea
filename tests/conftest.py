from datetime import date

import pytest
from fastapi.testclient import TestClient

from gymbro.config import Config
from gymbro.gateway import SqlGateway, create_db_engine, init_db
from gymbro.mock_store import MockStore
from gymbro.main import create_app

TODAY = date(2024, 1, 10)
USER = "user-1"


def sql_gateway() -> SqlGateway:
    engine = create_db_engine("sqlite://")
    init_db(engine)
    return SqlGateway(engine)


@pytest.fixture(params=["mock", "sql"])
def gateway(request):
    """Every service test runs against both the in-memory store and SQLite."""
    return MockStore() if request.param == "mock" else sql_gateway()


@pytest.fixture
def clock():
    class Clock:
        day = TODAY
        def __call__(self):
            return self.day
    return Clock()


@pytest.fixture
def mock_client():
    store = MockStore()
    app = create_app(Config(DEV_TOOLS=True), gateway=store)
    with TestClient(app) as c:
        c.store = store
        yield c


@pytest.fixture
def sql_config():
    return Config(DATABASE_URL="sqlite://", JWT_SECRET="test-secret", APP_URL="http://app.test",
                  API_URL="http://api.test", GOOGLE_CLIENT_ID="cid", GOOGLE_CLIENT_SECRET="csecret")


@pytest.fixture
def sql_client(sql_config):
    app = create_app(sql_config, gateway=sql_gateway())
    with TestClient(app) as c:
        yield c
