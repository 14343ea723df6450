import os
import sys
import uuid

import pytest

# Path setup before any project imports to satisfy E402
ROOT = os.path.dirname(__file__)
PARENT = os.path.abspath(os.path.join(ROOT, ".."))
if PARENT not in sys.path:  # pragma: no cover - environment dependent
    sys.path.insert(0, PARENT)


def _lazy_imports():  # isolate heavy imports & satisfy lint ordering
    from buttons_api.app_factory import create_app  # noqa: E402
    from buttons_api.db import create_all  # noqa: E402

    return create_app, create_all


JWT_TEST_SECRET = "test-jwt-secret"


@pytest.fixture(scope="session")
def app_session(tmp_path_factory):
    create_app, create_all = _lazy_imports()
    db_file = tmp_path_factory.mktemp("db") / "test_buttons.db"
    url = f"sqlite:///{db_file}"
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test",
            "database_url": url,
            "jwt_secrets": [JWT_TEST_SECRET],
            "FORCE_DB_REINIT": True,
        }
    )
    with app.app_context():
        create_all()
    return app


@pytest.fixture(autouse=True)
def _clean_tables(app_session):
    """Each test starts from empty tables (ids keep growing; sqlite AUTOINCREMENT)."""
    from buttons_api.db import get_session
    from buttons_api.models import AutomateDomain, AutomateInstance, CustomButton, Dialog, UserRole

    db = get_session()
    try:
        for model in (AutomateInstance, AutomateDomain, CustomButton, Dialog, UserRole):
            db.query(model).delete()
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture(scope="function")
def client(app_session):
    c = app_session.test_client()
    # Ensure clean base environ so no identity leaks between tests
    c.environ_base = {}
    return c


@pytest.fixture
def api_headers():
    """Return a factory granting the given capability identifiers.

    Creates a role holding exactly those features and returns the test headers
    that make the caller act under it. Called with no identifiers the caller is
    authenticated but holds no capability.
    """
    from buttons_api.db import get_session
    from buttons_api.models import UserRole

    def _make(*identifiers: str) -> dict[str, str]:
        name = f"role_{uuid.uuid4().hex[:8]}"
        db = get_session()
        try:
            db.add(UserRole(name=name, features=list(identifiers)))
            db.commit()
        finally:
            db.close()
        return {"X-User-Role": name, "X-User-Id": "api_tester"}

    return _make


@pytest.fixture
def seed_button():
    from buttons_api.db import get_session
    from buttons_api.models import CustomButton

    def _make(**fields) -> int:
        values = {"name": "custom_button", "options": {}}
        values.update(fields)
        db = get_session()
        try:
            cb = CustomButton(**values)
            db.add(cb)
            db.commit()
            return cb.id
        finally:
            db.close()

    return _make


@pytest.fixture
def href():
    def _href(button_id: int) -> str:
        return f"http://localhost/api/custom_buttons/{button_id}"

    return _href
