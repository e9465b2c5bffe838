import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__, auth, bootstrap, crud, schemas
from .config import Settings
from .database import Base, get_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

router = APIRouter(prefix="/api")


def _user_exists():
    return HTTPException(status_code=400, detail="User already exists")


def _check_assignee(db: Session, assigned_to: Optional[int]):
    if assigned_to is not None and not crud.get_user_by_id(db, assigned_to):
        raise HTTPException(status_code=400, detail="Assigned user not found")


# AUTH
@router.post("/auth/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db),
             settings: Settings = Depends(auth.get_settings)):
    if crud.find_conflicting_user(db, payload.username, payload.email):
        logger.info("Registration rejected for %s: already exists", payload.username)
        raise _user_exists()
    try:
        user = crud.create_user(db, payload, role=payload.role)
    except IntegrityError:
        db.rollback()
        raise _user_exists()
    token = auth.create_access_token(user, settings)
    return {"message": "User created successfully", "token": token, "user": user}


@router.post("/auth/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db),
          settings: Settings = Depends(auth.get_settings)):
    user = auth.authenticate_user(db, payload.username, payload.password)
    if not user:
        logger.info("Failed login for %s", payload.username)
        raise HTTPException(status_code=400, detail="Invalid credentials")
    token = auth.create_access_token(user, settings)
    return {"message": "Login successful", "token": token, "user": user}


@router.get("/auth/me", response_model=schemas.UserDetail)
def me(claims: schemas.TokenClaims = Depends(auth.get_token_claims), db: Session = Depends(get_db)):
    user = crud.get_user_by_id(db, claims.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ADMIN
@router.get("/admin/users", response_model=schemas.UserList)
def list_users(claims: schemas.TokenClaims = Depends(auth.require_admin), db: Session = Depends(get_db)):
    return crud.get_users(db)


@router.post("/admin/users", response_model=schemas.UserMessage, status_code=status.HTTP_201_CREATED)
def create_user(payload: schemas.AdminUserCreate, claims: schemas.TokenClaims = Depends(auth.require_admin),
                db: Session = Depends(get_db)):
    if crud.find_conflicting_user(db, payload.username, payload.email):
        raise _user_exists()
    try:
        user = crud.create_user(db, payload, role=payload.role, permissions=payload.permissions)
    except IntegrityError:
        db.rollback()
        raise _user_exists()
    return {"message": "User created successfully", "user": user}


@router.put("/admin/users/{user_id}", response_model=schemas.UserMessage)
def update_user(user_id: int, payload: schemas.AdminUserUpdate,
                claims: schemas.TokenClaims = Depends(auth.require_admin), db: Session = Depends(get_db)):
    if not crud.get_user_by_id(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    if crud.find_conflicting_user(db, payload.username, payload.email, exclude_id=user_id):
        raise _user_exists()
    try:
        user = crud.update_user(db, user_id, payload)
    except IntegrityError:
        db.rollback()
        raise _user_exists()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User updated successfully", "user": user}


@router.delete("/admin/users/{user_id}", response_model=schemas.Message)
def delete_user(user_id: int, claims: schemas.TokenClaims = Depends(auth.require_admin),
                db: Session = Depends(get_db)):
    if not crud.delete_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User deleted successfully"}


# TASKS
@router.get("/tasks", response_model=schemas.TaskList)
def list_tasks(claims: schemas.TokenClaims = Depends(auth.get_token_claims), db: Session = Depends(get_db)):
    return crud.get_tasks(db)


@router.post("/tasks", response_model=schemas.TaskMessage, status_code=status.HTTP_201_CREATED)
def create_task(payload: schemas.TaskCreate, claims: schemas.TokenClaims = Depends(auth.require_write_permission),
                db: Session = Depends(get_db)):
    if not crud.get_user_by_id(db, claims.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    _check_assignee(db, payload.assigned_to)
    task = crud.create_task(db, payload, creator_id=claims.user_id)
    return {"message": "Task created successfully", "task": task}


@router.put("/tasks/{task_id}", response_model=schemas.TaskMessage)
def update_task(task_id: int, payload: schemas.TaskUpdate,
                claims: schemas.TokenClaims = Depends(auth.require_write_permission),
                db: Session = Depends(get_db)):
    if not crud.get_task(db, task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    _check_assignee(db, payload.assigned_to)
    task = crud.update_task(db, task_id, payload)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"message": "Task updated successfully", "task": task}


@router.delete("/tasks/{task_id}", response_model=schemas.Message)
def delete_task(task_id: int, claims: schemas.TokenClaims = Depends(auth.require_write_permission),
                db: Session = Depends(get_db)):
    if not crud.delete_task(db, task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return {"message": "Task deleted successfully"}


@router.get("/health")
def health():
    return {"status": "ok"}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its own engine and session factory, creating tables and the default admin."""
    settings = settings or Settings.from_env()

    engine = make_engine(settings.database_url)
    session_factory = make_session_factory(engine)
    Base.metadata.create_all(bind=engine)

    bootstrap.warn_insecure_settings(settings)
    db = session_factory()
    try:
        bootstrap.create_default_admin(db, settings)
    finally:
        db.close()

    app = FastAPI(title="Task Tracker API", version=__version__)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Store error on %s %s", request.method, request.url.path, exc_info=exc)
        content = {"detail": "Server error"}
        if settings.expose_errors:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        content = {"detail": "Server error"}
        if settings.expose_errors:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.get("/", include_in_schema=False)
    def index():
        return FileResponse(STATIC_DIR / "index.html")

    app.include_router(router)
    return app
