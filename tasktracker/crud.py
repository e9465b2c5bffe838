import logging
from datetime import datetime
from typing import Optional

from passlib.hash import bcrypt
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from . import models, schemas

logger = logging.getLogger(__name__)


# ACCOUNTS
def create_user(db: Session, user: schemas.UserCreate, role: str = models.ROLE_USER,
                permissions: str = models.PERMISSION_READ):
    hashed = bcrypt.hash(user.password)
    db_user = models.User(
        username=user.username,
        email=user.email,
        hashed_password=hashed,
        role=role,
        permissions=permissions,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Created user %s (role=%s, permissions=%s)", db_user.username, role, permissions)
    return db_user


def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_id(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def find_conflicting_user(db: Session, username: Optional[str] = None, email: Optional[str] = None,
                          exclude_id: Optional[int] = None):
    """Return an account already holding ``username`` or ``email``, if any."""
    clauses = []
    if username is not None:
        clauses.append(models.User.username == username)
    if email is not None:
        clauses.append(models.User.email == email)
    if not clauses:
        return None
    q = db.query(models.User).filter(or_(*clauses))
    if exclude_id is not None:
        q = q.filter(models.User.id != exclude_id)
    return q.first()


def get_admin(db: Session):
    return db.query(models.User).filter(models.User.role == models.ROLE_ADMIN).first()


def get_users(db: Session):
    return db.query(models.User).order_by(models.User.id).all()


def update_user(db: Session, user_id: int, user_update: schemas.AdminUserUpdate):
    user = get_user_by_id(db, user_id)
    if not user:
        return None
    for field, value in user_update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("Updated user %s", user.id)
    return user


def delete_user(db: Session, user_id: int):
    user = get_user_by_id(db, user_id)
    if not user:
        return False
    db.query(models.Task).filter(models.Task.assigned_to_id == user_id).update(
        {models.Task.assigned_to_id: None}, synchronize_session=False
    )
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user_id)
    return True


# TASKS
def _task_query(db: Session):
    return db.query(models.Task).options(
        joinedload(models.Task.assigned_user),
        joinedload(models.Task.creator),
    )


def get_tasks(db: Session):
    return _task_query(db).order_by(models.Task.id).all()


def get_task(db: Session, task_id: int):
    return _task_query(db).filter(models.Task.id == task_id).first()


def create_task(db: Session, task: schemas.TaskCreate, creator_id: int):
    now = datetime.utcnow()
    db_task = models.Task(
        title=task.title,
        description=task.description,
        status=models.STATUS_OPEN,
        assigned_to_id=task.assigned_to,
        created_by_id=creator_id,
        created_at=now,
        updated_at=now,
    )
    db.add(db_task)
    db.commit()
    logger.info("User %s created task %s", creator_id, db_task.id)
    return get_task(db, db_task.id)


def update_task(db: Session, task_id: int, task_update: schemas.TaskUpdate):
    task = db.query(models.Task).filter(models.Task.id == task_id).first()
    if not task:
        return None
    changes = task_update.model_dump(exclude_unset=True)
    if "assigned_to" in changes:
        task.assigned_to_id = changes.pop("assigned_to")
    for field, value in changes.items():
        if value is None and field != "description":
            continue
        setattr(task, field, value)
    task.updated_at = datetime.utcnow()
    db.commit()
    db.expire_all()
    logger.info("Updated task %s", task_id)
    return get_task(db, task_id)


def delete_task(db: Session, task_id: int):
    task = db.query(models.Task).filter(models.Task.id == task_id).first()
    if not task:
        return False
    db.delete(task)
    db.commit()
    logger.info("Deleted task %s", task_id)
    return True
