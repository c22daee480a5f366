"""
Скрипт для создания таблиц и seed данных
"""

import sys
from pathlib import Path

# Добавляем корень проекта в путь
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from backend.core.auth import create_access_token  # noqa: E402
from backend.core.config import settings  # noqa: E402
from backend.core.database import Base, SessionLocal, engine  # noqa: E402

# Импортируем модели для регистрации в Base
import backend.modules.assets.models  # noqa: F401, E402
from backend.modules.assets.services.serials import ensure_counter  # noqa: E402
from backend.modules.hr.models.user import User  # noqa: E402


def create_tables():
    """Создает все таблицы в БД"""
    print("Создание таблиц...")
    Base.metadata.create_all(bind=engine)
    print("Таблицы созданы успешно")


def seed_serial_counter():
    """
    Создает строку глобального счётчика серийных номеров.
    Для существующих данных счётчик начинается с числа единиц учёта.
    """
    db = SessionLocal()
    try:
        counter = ensure_counter(db)
        db.commit()
        print(f"Счётчик серийных номеров: {counter.value}")
    except Exception as e:
        print(f"❌ Ошибка инициализации счётчика: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def seed_admin_user():
    """Создает первого администратора и печатает токен для него"""
    if not settings.seed_admin_enabled:
        print("Seed администратора отключен (SEED_ADMIN_ENABLED=false)")
        return

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == settings.seed_admin_email).first()
        if existing:
            print(f"Администратор уже существует: {existing.email}")
            return

        print(f"Создание администратора: {settings.seed_admin_email}")
        admin = User(
            email=settings.seed_admin_email,
            full_name=settings.seed_admin_name,
            role="admin",
            is_superuser=True,
            is_active=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)

        token = create_access_token(admin.id, admin.email, role="admin", name=admin.full_name)
        print("✅ Администратор создан:")
        print(f"   Email: {admin.email}")
        print(f"   ID: {admin.id}")
        print(f"   Token: {token}")

    except Exception as e:
        print(f"❌ Ошибка создания администратора: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 60)
    print("Инициализация базы данных IHUB Asset Management")
    print("=" * 60)

    db_url_display = (
        settings.database_url.split("@")[-1] if "@" in settings.database_url else settings.database_url
    )
    print(f"\nПодключение к БД: {db_url_display}")

    create_tables()
    print()
    seed_serial_counter()
    print()
    seed_admin_user()

    print("\n" + "=" * 60)
    print("Инициализация завершена")
    print("=" * 60)
