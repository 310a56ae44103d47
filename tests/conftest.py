import os

# Redis is not needed in tests: the database constraints serialize writers
os.environ["ENABLE_DISTRIBUTED_LOCKS"] = "false"
os.environ["ENABLE_REQUEST_LOGGING"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CALENDAR_TIMEZONE"] = "UTC"

from datetime import datetime, timezone  # noqa: E402
from typing import Dict  # noqa: E402

from httpx import ASGITransport, AsyncClient  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from study_cafe_seating.database import (  # noqa: E402
    create_database_engine,
    create_session_factory,
    create_tables,
    get_db,
)
from study_cafe_seating.main import create_app  # noqa: E402
from study_cafe_seating.models import Seat  # noqa: E402
from study_cafe_seating.schemas.center_settings import CenterSettingsUpdate  # noqa: E402
from study_cafe_seating.services.center_settings_service import CenterSettingsService  # noqa: E402
from study_cafe_seating.services.seat_service import SeatService  # noqa: E402
from study_cafe_seating.utils.auth import Actor, ActorRole, create_access_token  # noqa: E402
from study_cafe_seating.utils.clock import FrozenClock, get_clock  # noqa: E402


CENTER_ID = "center-gangnam"
T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite so concurrent sessions use separate connections."""
    engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'study_cafe.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture(scope="function")
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture
def staff():
    return Actor(id="teacher-kim", role=ActorRole.STAFF)


@pytest.fixture
def student_a():
    return Actor(id="student-a", role=ActorRole.STUDENT)


@pytest.fixture
def student_b():
    return Actor(id="student-b", role=ActorRole.STUDENT)


@pytest_asyncio.fixture(scope="function")
async def seats(session_factory, staff) -> Dict[int, Seat]:
    """Enable the study cafe for CENTER_ID, which seeds the default layout."""
    async with session_factory() as session:
        await CenterSettingsService(session).upsert_settings(
            CENTER_ID,
            CenterSettingsUpdate(is_enabled=True, notice="Quiet please"),
            staff,
        )
        center_seats = await SeatService(session).list_seats(CENTER_ID)
    return {seat.seat_number: seat for seat in center_seats}


def bearer(actor_id: str, role: str = "student") -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor_id, role)}"}


@pytest.fixture
def auth_headers():
    return bearer


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, clock):
    """HTTP client against an app wired to the test database and clock."""
    app = create_app(use_lifespan=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
