# tests/conftest.py
import os
import secrets
import sys
import tempfile
import pytest
from pathlib import Path
from datetime import datetime, UTC, timedelta

# Calculate project root
project_root = str(Path(__file__).parent.parent)

# Add project root to Python path
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Keep uploads and the app's default database out of the working tree
_scratch = tempfile.mkdtemp(prefix="bookshare-tests-")
os.environ.setdefault("STORAGE_DIR", os.path.join(_scratch, "storage"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_scratch, 'app.db')}")

from sqlalchemy.orm import Session

from core.constants import BorrowRequestStatus
from core.sa.database import Database
from core.sa.models import Base, User, Book, BorrowRequest, AuthSession
from core.sa.repositories.user import UserRepository
from core.sa.repositories.book import BookRepository


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory):
    """Create a temporary directory for the test database."""
    test_dir = tmp_path_factory.mktemp("test_db")
    return str(test_dir / "test_bookshare.db")


@pytest.fixture(scope="session")
def database(test_db_path):
    """Create a test database instance"""
    db = Database(f"sqlite:///{test_db_path}")

    # Drop all tables and recreate schema
    Base.metadata.drop_all(db.engine)
    Base.metadata.create_all(db.engine)

    yield db

    db.engine.dispose()
    try:
        os.remove(test_db_path)
    except OSError:
        pass


@pytest.fixture(scope="function")
def db_session(database):
    """Create a new database session for a test"""
    session: Session = database.get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def cleanup_db(db_session):
    """Empty every table before each test, children first"""
    for table in reversed(Base.metadata.sorted_tables):
        db_session.execute(table.delete())
    db_session.commit()
    yield
    db_session.rollback()


@pytest.fixture
def make_user(db_session):
    """Factory for users with a throwaway password hash."""
    def _make_user(name: str, email: str = None, is_admin: bool = False) -> User:
        email = email or f"{name.lower().replace(' ', '.')}@example.com"
        return UserRepository(db_session).create_user(email, name, "not-a-real-hash", is_admin=is_admin)
    return _make_user


@pytest.fixture
def owner(make_user):
    return make_user("Olivia Owner")


@pytest.fixture
def borrower(make_user):
    return make_user("Ben Borrower")


@pytest.fixture
def stranger(make_user):
    return make_user("Sam Stranger")


@pytest.fixture
def admin_user(make_user):
    return make_user("Ada Admin", is_admin=True)


@pytest.fixture
def sample_book(db_session, owner):
    """A borrowable book owned by `owner`."""
    return BookRepository(db_session).create_book(
        owner.id,
        title="Project Hail Mary",
        author="Andy Weir",
        isbn="9780593135204",
        genre="Science Fiction",
        description="A lone astronaut must save the earth.",
        condition="good",
    )


@pytest.fixture
def make_request(db_session):
    """Factory for borrow requests in any status, bypassing the workflow."""
    def _make_request(book: Book, borrower: User, status: BorrowRequestStatus = BorrowRequestStatus.PENDING,
                      due_date: datetime = None) -> BorrowRequest:
        now = datetime.now(UTC)
        borrow_request = BorrowRequest(
            book_id=book.id,
            borrower_id=borrower.id,
            owner_id=book.owner_id,
            status=BorrowRequestStatus(status).value,
            requested_at=now,
            approved_at=now if status != BorrowRequestStatus.PENDING else None,
            due_date=due_date,
        )
        if status in (BorrowRequestStatus.APPROVED, BorrowRequestStatus.BORROWED,
                      BorrowRequestStatus.RETURN_INITIATED):
            book.borrowable = False
        db_session.add(borrow_request)
        db_session.commit()
        return borrow_request
    return _make_request


@pytest.fixture
def pending_request(make_request, sample_book, borrower):
    return make_request(sample_book, borrower)


@pytest.fixture
def make_token(db_session):
    """Issue a bearer token for a user without going through sign in."""
    def _make_token(user: User) -> str:
        token = secrets.token_urlsafe(16)
        db_session.add(AuthSession(token=token, user_id=user.id,
                                   expires_at=datetime.now(UTC) + timedelta(days=1)))
        db_session.commit()
        return token
    return _make_token


@pytest.fixture
def client(database):
    """API client whose requests use the test database. The lifespan does not run."""
    from fastapi.testclient import TestClient
    from api.main import app
    from core.sa.database import get_db

    def override_get_db():
        session = database.get_session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(make_token):
    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {make_token(user)}"}
    return _auth_headers
