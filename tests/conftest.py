"""
Test configuration and fixtures for specgraph tests.
"""
import pytest
from unittest.mock import Mock
from sqlalchemy.orm import sessionmaker

from specgraph.db.database import build_engine
from specgraph.db.models import Base
from specgraph.db.storage import SqlAlchemyStorage
from specgraph.domain.events import event_publisher
from specgraph.application.code_allocator import CodeAllocator
from specgraph.application.artifact_service import ArtifactService


@pytest.fixture(autouse=True)
def clean_event_publisher():
    """Keep subscribers from leaking between tests."""
    event_publisher.clear_subscribers()
    yield
    event_publisher.clear_subscribers()


@pytest.fixture
def db_url(tmp_path):
    """File-backed SQLite so concurrent connections share one database."""
    return f"sqlite:///{tmp_path / 'specgraph.db'}"


@pytest.fixture
def engine(db_url):
    engine = build_engine(db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(db_session):
    """Create a test SQLAlchemy storage instance."""
    return SqlAlchemyStorage(db_session)


@pytest.fixture
def allocator(storage):
    return CodeAllocator(storage, sleep=Mock())


@pytest.fixture
def service(storage, allocator):
    return ArtifactService(storage, allocator)


@pytest.fixture
def sample_project(storage):
    """Create a sample project for testing."""
    return storage.create_project("Test Project", "TP-0001", "A test project")
