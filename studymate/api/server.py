from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import pydantic
from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from studymate.config import Config, load_config
from studymate.db import connect, init_db
from studymate.errors import StudyMateError, ValidationError

from studymate.auth import get_current_student_id
from studymate.auth.crud import (
    create_student,
    get_profile,
    public_student,
    touch_last_login,
    update_profile,
    update_theme_preference,
    verify_student_credentials,
)
from studymate.auth.security import create_access_token
from studymate.budget.crud import (
    add_expense,
    delete_expense,
    list_expenses,
    parse_new_expense,
    set_allowance,
)
from studymate.tasks.crud import create_task, delete_task, list_tasks, update_task
from studymate.tasks.models import parse_new_task, parse_task_update


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


def _cfg(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return cfg


def _parse(model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload if payload is not None else {})
    except pydantic.ValidationError:
        raise ValidationError("invalid_body")


router = APIRouter()


# -----------------------------
# Health
# -----------------------------


@router.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(BaseModel):
    """Public self-serve registration (front end sends `fullName`)."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    picture: Optional[str] = None


def _register(cfg: Config, payload: Any) -> JSONResponse:
    req: RegisterRequest = _parse(RegisterRequest, payload)
    if not (req.full_name or "").strip() or not (req.username or "").strip():
        raise ValidationError("missing_fields")
    if not (req.email or "").strip() or not req.password:
        raise ValidationError("missing_fields")
    if len(req.username.strip()) < cfg.USERNAME_MIN_LENGTH:
        raise ValidationError("username_too_short")
    if len(req.password) < cfg.PASSWORD_MIN_LENGTH:
        raise ValidationError("password_too_short")

    with connect(cfg.DB_DSN) as conn:
        s = create_student(
            conn,
            full_name=req.full_name or "",
            username=req.username,
            email=req.email or "",
            password=req.password,
        )

    _debug(f"Registered student_id={s.get('student_id')} username={s.get('username')}")
    return JSONResponse(
        status_code=201,
        content={"message": "registration_successful", "student": s},
    )


def _login(cfg: Config, payload: Any) -> Dict[str, Any]:
    req: LoginRequest = _parse(LoginRequest, payload)
    if not (req.username or "").strip() or not req.password:
        raise ValidationError("missing_credentials")

    with connect(cfg.DB_DSN) as conn:
        row = verify_student_credentials(conn, req.username or "", req.password)
        if row is None:
            raise HTTPException(status_code=401, detail="invalid_credentials")

        student_id = int(row["student_id"])
        touch_last_login(conn, student_id)
        s = public_student(row)

    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        student_id=student_id,
        expires_minutes=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES),
    )
    _debug(f"Login student_id={student_id}")
    return {"access_token": token, "token_type": "bearer", "student": s}


@router.post("/auth")
def auth_post(
    request: Request,
    action: str = Query(""),
    payload: Optional[Dict[str, Any]] = Body(default=None),
) -> Any:
    cfg = _cfg(request)
    if action == "register":
        return _register(cfg, payload)
    if action == "login":
        return _login(cfg, payload)
    raise ValidationError("unknown_action")


@router.get("/auth")
def auth_get(request: Request, action: str = Query("")) -> Dict[str, Any]:
    if action != "profile":
        raise ValidationError("unknown_action")
    cfg = _cfg(request)
    student_id = get_current_student_id(request)
    with connect(cfg.DB_DSN) as conn:
        return get_profile(conn, student_id)


@router.put("/auth")
def auth_put(
    request: Request,
    action: str = Query(""),
    payload: Optional[Dict[str, Any]] = Body(default=None),
) -> Dict[str, Any]:
    if action != "profile":
        raise ValidationError("unknown_action")
    cfg = _cfg(request)
    student_id = get_current_student_id(request)
    body = payload or {}

    # A theme change is its own update path; other profile fields are ignored.
    if "theme_preference" in body:
        theme = body.get("theme_preference")
        if not isinstance(theme, str):
            raise ValidationError("invalid_theme")
        with connect(cfg.DB_DSN) as conn:
            t = update_theme_preference(conn, student_id, theme)
        return {"message": "theme_updated", "theme_preference": t}

    req: ProfileUpdateRequest = _parse(ProfileUpdateRequest, body)
    with connect(cfg.DB_DSN) as conn:
        profile = update_profile(
            conn,
            student_id,
            name=req.name or "",
            username=req.username or "",
            email=req.email or "",
            bio=req.bio,
            picture=req.picture,
        )
    return {"message": "profile_updated", "profile": profile}


# -----------------------------
# Tasks
# -----------------------------


@router.get("/tasks")
def tasks_list(request: Request, student_id: int = Depends(get_current_student_id)) -> Any:
    with connect(_cfg(request).DB_DSN) as conn:
        return list_tasks(conn, student_id)


@router.post("/tasks", status_code=201)
def tasks_create(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    student_id: int = Depends(get_current_student_id),
) -> Dict[str, Any]:
    new_task = parse_new_task(payload)
    with connect(_cfg(request).DB_DSN) as conn:
        task = create_task(conn, student_id, new_task)
    return {"id": task["id"], "message": "task_created", "task": task}


@router.put("/tasks/{task_id}")
def tasks_update(
    task_id: int,
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    student_id: int = Depends(get_current_student_id),
) -> Dict[str, Any]:
    update = parse_task_update(payload)
    with connect(_cfg(request).DB_DSN) as conn:
        task = update_task(conn, student_id, task_id, update)
    return {"message": "task_updated", "task": task}


@router.delete("/tasks/{task_id}", status_code=204)
def tasks_delete(
    task_id: int,
    request: Request,
    student_id: int = Depends(get_current_student_id),
) -> Response:
    with connect(_cfg(request).DB_DSN) as conn:
        delete_task(conn, student_id, task_id)
    return Response(status_code=204)


# -----------------------------
# Budget (expenses + allowance)
# -----------------------------


@router.get("/budget")
def budget_list(request: Request, student_id: int = Depends(get_current_student_id)) -> Dict[str, Any]:
    with connect(_cfg(request).DB_DSN) as conn:
        return list_expenses(conn, student_id)


@router.post("/budget", status_code=201)
def budget_add_expense(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    student_id: int = Depends(get_current_student_id),
) -> Dict[str, Any]:
    expense = parse_new_expense(payload)
    with connect(_cfg(request).DB_DSN) as conn:
        expense_id = add_expense(conn, student_id, expense)
    return {"id": expense_id, "message": "expense_added"}


@router.delete("/budget/{expense_id}", status_code=204)
def budget_delete_expense(
    expense_id: int,
    request: Request,
    student_id: int = Depends(get_current_student_id),
) -> Response:
    with connect(_cfg(request).DB_DSN) as conn:
        delete_expense(conn, student_id, expense_id)
    return Response(status_code=204)


@router.put("/budget")
def budget_put(
    request: Request,
    action: str = Query(""),
    payload: Optional[Dict[str, Any]] = Body(default=None),
    student_id: int = Depends(get_current_student_id),
) -> Dict[str, Any]:
    if action != "allowance":
        raise ValidationError("unknown_action")
    with connect(_cfg(request).DB_DSN) as conn:
        allowance = set_allowance(conn, student_id, (payload or {}).get("allowance"))
    return {"message": "allowance_updated", "allowance": allowance}


# -----------------------------
# App
# -----------------------------


async def _studymate_error(request: Request, exc: StudyMateError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed JSON / wrong path param types are client errors like any other.
    return JSONResponse(status_code=400, content={"detail": "invalid_request"})


def create_app(cfg: Config | None = None) -> FastAPI:
    cfg = cfg or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Ensure schema exists.
        init_db(cfg.DB_DSN)
        yield

    app = FastAPI(title="StudyMate API", version="0.1.0", lifespan=lifespan)
    # Make config available to auth deps and handlers.
    app.state.cfg = cfg

    # CORS: the static front end is usually served from another origin in development.
    cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

    app.add_exception_handler(StudyMateError, _studymate_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.include_router(router)
    return app


app = create_app()
