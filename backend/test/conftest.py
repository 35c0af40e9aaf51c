"""
Pytest Configuration and Fixtures
"""

import os
import tempfile
from datetime import timedelta
from decimal import Decimal
from typing import Generator
from uuid import uuid4

# Configure the app for tests before anything reads settings
_TEST_DB_DIR = tempfile.mkdtemp(prefix="courtside-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
os.environ["DEBUG"] = "false"
os.environ["COMPLETION_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = ""

import pytest  # noqa: E402
from faker import Faker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from courtside import database  # noqa: E402
from courtside.config import settings  # noqa: E402
from courtside.database import Base, build_engine, get_db  # noqa: E402
from courtside.main import app  # noqa: E402
from courtside.models import (  # noqa: E402
    Booking,
    Coupon,
    Court,
    CourtSlotClaim,
    DiscountType,
    Facility,
    Notification,
    SportType,
    User,
    UserRole,
    WalletTransaction,
)
from courtside.utils.auth import create_access_token, get_password_hash  # noqa: E402
from courtside.utils.timeslots import facility_now, utcnow  # noqa: E402

fake = Faker()

# One SQLite file for the whole session; rows are deleted after every test
engine = build_engine(settings.DATABASE_URL)
database.configure(engine)
Base.metadata.create_all(bind=engine)

# Delete order respects foreign keys
CLEANUP_ORDER = [Notification, WalletTransaction, CourtSlotClaim, Booking, Coupon, Court, Facility, User]


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Session on the test database, cleaned up after each test"""
    SessionLocal = database.get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for model in CLEANUP_ORDER:
            db.query(model).delete()
        db.commit()
        db.close()


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _make_user(db: Session, role: UserRole, password: str = "Password123") -> User:
    unique_id = str(uuid4())[:8]
    user = User(
        email=f"{role.value}-{unique_id}@example.com",
        username=f"{role.value}-{unique_id}",
        hashed_password=get_password_hash(password),
        full_name=fake.name(),
        phone_number="9876543210",
        role=role,
        is_active=True,
        wallet_balance=Decimal("0"),
        reward_points=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db: Session) -> User:
    """A regular customer with an empty wallet"""
    return _make_user(db, UserRole.USER)


@pytest.fixture
def other_customer(db: Session) -> User:
    return _make_user(db, UserRole.USER)


@pytest.fixture
def owner(db: Session) -> User:
    """Owner of the test facility"""
    return _make_user(db, UserRole.OWNER)


@pytest.fixture
def other_owner(db: Session) -> User:
    """Owner of some other facility"""
    return _make_user(db, UserRole.OWNER)


@pytest.fixture
def admin(db: Session) -> User:
    return _make_user(db, UserRole.ADMIN)


@pytest.fixture
def facility(db: Session, owner: User) -> Facility:
    """Create a test facility"""
    facility = Facility(
        owner_id=owner.id,
        name="Test Sports Arena",
        description="Indoor courts for testing",
        address=fake.street_address(),
        city="Bengaluru",
        is_active=True,
    )
    db.add(facility)
    db.commit()
    db.refresh(facility)
    return facility


@pytest.fixture
def court(db: Session, facility: Facility) -> Court:
    """Badminton court at 500/hour, open 06:00-22:00"""
    court = Court(
        facility_id=facility.id,
        name="Court 1",
        sport_type=SportType.BADMINTON,
        price_per_hour=Decimal("500.00"),
        operating_hours_start="06:00",
        operating_hours_end="22:00",
        is_active=True,
    )
    db.add(court)
    db.commit()
    db.refresh(court)
    return court


@pytest.fixture
def coupon(db: Session) -> Coupon:
    """SAVE10: 10% off bookings of at least 400"""
    coupon = Coupon(
        code="SAVE10",
        name="Save 10%",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        min_amount=Decimal("400"),
        valid_from=utcnow() - timedelta(days=1),
        valid_until=utcnow() + timedelta(days=30),
        usage_limit=100,
        used_count=0,
        is_active=True,
    )
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return coupon


@pytest.fixture
def booking_date():
    """A date safely in the future in facility-local time"""
    return facility_now().date() + timedelta(days=7)


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def customer_headers(customer: User) -> dict:
    return auth_header(customer)


@pytest.fixture
def owner_headers(owner: User) -> dict:
    return auth_header(owner)


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return auth_header(admin)
