"""
Общие фикстуры: SQLite в памяти, пользователи по ролям и их JWT.
"""
import os

# Настройки читаются при импорте backend.core.config: задаём до импорта приложения
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_ADMIN_ENABLED"] = "false"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import backend.modules.assets.models  # noqa: F401, E402
from backend.core.auth import create_access_token  # noqa: E402
from backend.core.database import Base, engine  # noqa: E402
from backend.main import app  # noqa: E402
from backend.modules.assets.schemas.inventory import InventoryItemCreate  # noqa: E402
from backend.modules.hr.models.user import User  # noqa: E402

# Объекты не истекают после commit: тесты читают поля без новой транзакции
TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def make_user(db, email: str, full_name: str, role: str = "employee", **kwargs) -> User:
    user = User(email=email, full_name=full_name, role=role, **kwargs)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db):
    return make_user(db, "admin@ihub.local", "Asha Admin", role="admin")


@pytest.fixture
def manager(db):
    return make_user(db, "stock@ihub.local", "Sam Stock", role="stock_manager")


@pytest.fixture
def employee(db):
    return make_user(db, "emp1@ihub.local", "Emma Employee", department="Research")


@pytest.fixture
def other_employee(db):
    return make_user(db, "emp2@ihub.local", "Omar Other", department="Design")


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.email, role=user.role, name=user.full_name)
    return {"Authorization": f"Bearer {token}"}


def item_payload(**overrides) -> dict:
    """Минимально достаточные поля единицы учёта"""
    data = {
        "financial_year": "2024-25",
        "asset_category": "Electronics",
        "asset_name": "Laptop",
        "vendor_name": "Acme Traders",
        "rate_inclusive_tax": "85000.00",
        "location": "Storage Room A",
    }
    data.update(overrides)
    return data


def item_data(**overrides) -> InventoryItemCreate:
    payload = item_payload(**overrides)
    payload["rate_inclusive_tax"] = Decimal(str(payload["rate_inclusive_tax"]))
    return InventoryItemCreate(**payload)
