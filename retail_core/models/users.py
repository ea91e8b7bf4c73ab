import enum
from sqlalchemy import Column, Integer, String, Boolean, Enum, DateTime
from sqlalchemy.sql import func
from retail_core.database import Base


class Role(str, enum.Enum):
    ADMIN = "ADMIN"          # Puede todo
    EMPLOYEE = "EMPLOYEE"    # Caja: ventas y abonos


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)

    password_hash = Column(String, nullable=False)

    role = Column(Enum(Role), default=Role.EMPLOYEE, nullable=False)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
