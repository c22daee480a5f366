from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from backend.core.database import Base


class User(Base):
    """
    Пользователи, которым выдаются активы и которые рассматривают заявки.
    Имя для отображения берётся отсюда при чтении, а не копируется в записи.
    """

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    department = Column(String(255), nullable=True)

    # employee, stock_manager, admin
    role = Column(String(32), default="employee", nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def get_role(self) -> str:
        """Роль пользователя в модуле активов"""
        if self.is_superuser:
            return "admin"
        return self.role or "employee"

    def has_role(self, required_roles: list[str]) -> bool:
        """Проверить, есть ли у пользователя одна из требуемых ролей"""
        role = self.get_role()
        return role == "admin" or role in required_roles
