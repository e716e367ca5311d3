import os

# Keep the module-level engine off Postgres during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402

from authenticity.tests.fakes import create_test_db  # noqa: E402


@pytest.fixture
def db():
    session = create_test_db()
    try:
        yield session
    finally:
        session.close()
