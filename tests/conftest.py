import pytest

from tunebridge.infrastructure.persistence.database.db_connection import (
    create_db_engine,
    create_session_factory,
    init_db,
)

pytest_plugins = ["tests.fixtures.models"]


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine with the schema created, per test."""
    engine = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'tunebridge.db'}")
    try:
        await init_db(engine)
    except Exception as e:
        pytest.fail(f"Database initialization failed: {e}")
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the per-test engine."""
    return create_session_factory(db_engine)
