from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from timekeeper.database.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)

    role = Column(String, nullable=False, default="employee")  # admin | manager | employee

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
