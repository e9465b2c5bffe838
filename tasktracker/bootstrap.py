import logging

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .config import DEFAULT_SECRET_KEY, Settings

logger = logging.getLogger(__name__)


def create_default_admin(db: Session, settings: Settings):
    """Create the default admin account unless some admin already exists.

    Returns the new account, or None when nothing was created.
    """
    if crud.get_admin(db):
        return None
    if crud.find_conflicting_user(db, settings.admin_username, settings.admin_email):
        logger.error("Cannot create default admin: username or email %s/%s is taken",
                     settings.admin_username, settings.admin_email)
        return None
    admin = crud.create_user(
        db,
        schemas.UserCreate.model_construct(
            username=settings.admin_username,
            email=settings.admin_email,
            password=settings.admin_password,
        ),
        role=models.ROLE_ADMIN,
        permissions=models.PERMISSION_WRITE,
    )
    logger.warning("Default admin user created: %s/%s", settings.admin_username, settings.admin_password)
    return admin


def warn_insecure_settings(settings: Settings) -> None:
    if settings.secret_key == DEFAULT_SECRET_KEY:
        logger.warning("JWT_SECRET is not set; tokens are signed with the built-in default key")
