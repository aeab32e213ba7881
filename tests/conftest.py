import pytest

from study_companion.models import Chapter, Subject, Topic
from study_companion.persistence import PersistenceGateway


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_companion.db")
    return db_path


@pytest.fixture
def offline_gateway(tmp_db):
    """Gateway with no remote store: everything lives in the local cache."""
    gateway = PersistenceGateway(tmp_db)
    yield gateway
    gateway.close()


@pytest.fixture
def small_syllabus():
    """Two subjects: Maths (3 topics in one chapter) and Circuits (2 chapters)."""
    return [
        Subject(id="math", name="Maths", chapters=[
            Chapter(id="alg", name="Algebra", topics=[
                Topic(id="a", name="Matrices", kind="primary", importance=90),
                Topic(id="b", name="Eigenvalues", kind="primary", importance=80),
                Topic(id="c", name="LU Decomposition", kind="secondary", importance=40),
            ]),
        ]),
        Subject(id="ckt", name="Circuits", chapters=[
            Chapter(id="net", name="Networks", topics=[
                Topic(id="d", name="Thevenin", kind="primary", importance=85),
            ]),
            Chapter(id="trans", name="Transients", topics=[
                Topic(id="e", name="RC Circuits", kind="secondary", importance=60),
            ]),
        ]),
    ]

