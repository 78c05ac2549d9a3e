from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from walletapi.config import Settings
from walletapi.models import Base, User, UserRole
from walletapi.services.commission_service import CommissionService
from walletapi.services.ledger_service import LedgerService
from walletapi.services.order_service import OrderService
from walletapi.services.payment_service import PaymentService


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(PLATFORM_ACCOUNT_ID=None, COMMISSION_RATE=Decimal("0.02"))


def _make_user(db, username: str, role: UserRole, **extra) -> User:
    user = User(
        email=f"{username}@example.com",
        username=username,
        role=role.value,
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "admin", UserRole.ADMIN)


@pytest.fixture
def buyer(db_session):
    return _make_user(db_session, "buyer", UserRole.USER)


@pytest.fixture
def seller(db_session):
    return _make_user(
        db_session,
        "seller",
        UserRole.SELLER,
        bank_name="Vietcombank",
        bank_account_number="0011001234567",
        bank_account_holder="NGUYEN VAN A",
        bank_branch="District 1",
    )


@pytest.fixture
def other_seller(db_session):
    return _make_user(db_session, "seller2", UserRole.SELLER)


@pytest.fixture
def ledger_service(db_session, settings):
    return LedgerService(db_session, settings)


@pytest.fixture
def payment_service(db_session, settings):
    return PaymentService(db_session, settings)


@pytest.fixture
def commission_service(db_session, settings):
    return CommissionService(db_session, settings)


@pytest.fixture
def order_service(db_session, settings):
    return OrderService(db_session, settings)
