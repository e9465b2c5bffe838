from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .database import Base

ROLE_ADMIN = "admin"
ROLE_USER = "user"
PERMISSION_READ = "read"
PERMISSION_WRITE = "write"
STATUS_OPEN = "open"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)
    permissions = Column(String, nullable=False, default=PERMISSION_READ)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    assigned_tasks = relationship("Task", back_populates="assigned_user", foreign_keys="Task.assigned_to_id")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, nullable=False, default=STATUS_OPEN)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    assigned_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # No FK: a deleted creator leaves the id behind.
    created_by_id = Column(Integer, nullable=False, index=True)

    assigned_user = relationship("User", back_populates="assigned_tasks", foreign_keys=[assigned_to_id])
    creator = relationship(
        "User",
        primaryjoin="foreign(Task.created_by_id) == User.id",
        viewonly=True,
    )
