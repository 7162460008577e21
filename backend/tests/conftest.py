"""
Pytest fixtures for layup backend tests.

Provides test database setup, seeded users per role, an
order -> plan -> layout -> task factory, and a test client.
"""

from dataclasses import dataclass

import pytest

from layup import create_app
from layup.extensions import db
from layup.models import Layout, Order, Plan, Task, User
from layup.services import layout_service, order_service, plan_service, task_service, token_service
from layup.services.auth_service import hash_password
from layup.services.event_service import RecordingObserver


PASSWORD = "Secret-pass-1"


@pytest.fixture(scope='session')
def recorder():
    return RecordingObserver()


@pytest.fixture(scope='session')
def app(recorder):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
        'EVENT_OBSERVER': recorder,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app, recorder):
    """Create fresh database for each test."""
    db.session.remove()
    # Clear all data but keep schema
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    recorder.clear()

    yield db.session

    # Cleanup after test
    db.session.rollback()
    db.session.remove()


@pytest.fixture
def events(db_session, recorder):
    """Events emitted during the test, in order."""
    return recorder


def _make_user(name: str, role: str, *, is_active: bool = True) -> User:
    user = User(
        name=name,
        role=role,
        is_active=is_active,
        password_hash=hash_password(PASSWORD),
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_user(db_session):
    return _make_user


@pytest.fixture
def admin(db_session):
    return _make_user("admin", "admin")


@pytest.fixture
def manager(db_session):
    return _make_user("manager", "manager")


@pytest.fixture
def pattern_maker(db_session):
    return _make_user("pat", "pattern_maker")


@pytest.fixture
def worker(db_session):
    return _make_user("anna", "worker")


@pytest.fixture
def other_worker(db_session):
    return _make_user("ben", "worker")


def auth_headers(user: User) -> dict:
    """Authorization header carrying a fresh access token for user."""
    token = token_service.issue_tokens(user).access_token
    return {'Authorization': f'Bearer {token}'}


@dataclass
class Chain:
    order: Order
    plan: Plan
    layout: Layout
    tasks: list[Task]

    @property
    def task(self) -> Task:
        return self.tasks[0]


_order_seq = [0]


def _make_chain(
    *,
    colors=("red",),
    planned_layers: int = 3,
    publish: bool = True,
    order_colors=("red", "blue"),
) -> Chain:
    _order_seq[0] += 1
    order = order_service.create_order(
        f"PO-{_order_seq[0]:04d}",
        "ST-100",
        [{"color": color, "size": "M", "quantity": 50} for color in order_colors],
    )
    plan = plan_service.create_plan(order.id, "Cut 1")
    layout = layout_service.create_layout(plan.id, "Marker A")
    tasks = [task_service.create_task(layout.id, color, planned_layers) for color in colors]
    if publish:
        plan_service.publish_plan(plan.id)
    return Chain(order=order, plan=plan, layout=layout, tasks=tasks)


@pytest.fixture
def make_chain(db_session):
    """
    Factory for Order -> Plan -> Layout -> Task(s).

    Published (in_progress) by default; one task per color.
    """
    return _make_chain


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture
def pattern_maker_headers(pattern_maker):
    return auth_headers(pattern_maker)


@pytest.fixture
def worker_headers(worker):
    return auth_headers(worker)
