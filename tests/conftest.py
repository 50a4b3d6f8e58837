import os

os.environ["ENV"] = "test"
os.environ.setdefault("DISABLE_AUTH", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import lumachor.models  # noqa: E402,F401
from lumachor.auth.session import get_current_user, get_optional_user  # noqa: E402
from lumachor.core.app_state import get_stream_client  # noqa: E402
from lumachor.db import Base, engine, get_db  # noqa: E402
from lumachor.main import create_app  # noqa: E402
from lumachor.routers.utils.dependencies import get_llm_runner  # noqa: E402

pytest_plugins = [
    "tests.fixtures.user_fixtures",
    "tests.fixtures.chat_fixtures",
    "tests.fixtures.context_fixtures",
    "tests.fixtures.llm_fixtures",
]


@pytest.fixture(scope="function")
def db():
    """Fresh schema per test on the in-memory engine."""
    Base.metadata.create_all(bind=engine)
    from lumachor.db import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def app(db, fake_llm):
    application = create_app(testing=True)

    def override_get_db():
        yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_llm_runner] = lambda: fake_llm.runner
    application.dependency_overrides[get_stream_client] = lambda: None
    return application


@pytest.fixture(scope="function")
def anonymous_client(app):
    """Client without any identity override."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def client(app, current_user):
    """Client authenticated as current_user."""
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_optional_user] = lambda: current_user
    with TestClient(app) as c:
        yield c


def act_as(app, user):
    """Switch the identity behind an already created client."""
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_optional_user] = lambda: user
