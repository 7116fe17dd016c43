from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from bug_tracker import __version__
from bug_tracker.auth import (
    TokenClaims,
    create_access_token,
    create_user,
    get_current_user,
    get_optional_user,
    require_bug_reporter,
    require_project_creator,
    verify_user_credentials,
)
from bug_tracker.auth.crud import find_account, touch_last_login
from bug_tracker.auth.deps import get_config
from bug_tracker.config import Config, load_config
from bug_tracker.db import connect, init_db
from bug_tracker.errors import InternalError, InvalidInput, TrackerError, Unauthorized
from bug_tracker.tracker import (
    add_tester,
    assign_bug,
    create_project,
    delete_project,
    list_bugs,
    list_projects,
    report_bug,
    resolve_bug,
)


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


router = APIRouter()


# -----------------------------
# Request bodies
# -----------------------------
# Fields are Optional so that a missing field reaches the service layer and is
# reported as a 400 with a field-specific detail code.


class RegisterRequest(BaseModel):
    email: Optional[str] = Field(default=None, validation_alias=AliasChoices("email", "identity"))
    password: Optional[str] = Field(default=None, validation_alias=AliasChoices("password", "secret"))
    role: Optional[str] = None  # Member|Tester, defaults to AUTH_DEFAULT_ROLE


class LoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, validation_alias=AliasChoices("email", "identity"))
    password: Optional[str] = Field(default=None, validation_alias=AliasChoices("password", "secret"))


class CreateProjectRequest(BaseModel):
    name: Optional[str] = None
    repositoryUrl: Optional[str] = None
    teamMembers: Optional[Any] = None  # must be a list; checked by the service


class AddTesterRequest(BaseModel):
    testerEmail: Optional[str] = None


class ReportBugRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = None
    priority: Optional[str] = None
    commitLink: Optional[str] = None


class AssignBugRequest(BaseModel):
    assignee: Optional[str] = None


class ResolveBugRequest(BaseModel):
    status: Optional[str] = None
    resolutionCommitLink: Optional[str] = None


# -----------------------------
# Health
# -----------------------------


@router.get("/")
def root() -> Dict[str, Any]:
    return {"message": "Welcome to the Bug Management API"}


@router.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------


@router.post("/auth/register", status_code=201)
def auth_register(payload: RegisterRequest, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    if not (payload.email or "").strip():
        raise InvalidInput("email_required", "Email is required")
    if not payload.password:
        raise InvalidInput("password_required", "Password is required")
    role = payload.role or cfg.AUTH_DEFAULT_ROLE

    with connect(cfg.DB_DSN) as conn:
        account = create_user(conn, email=payload.email, password=payload.password, role=role)

    return {"message": "User registered successfully", "user": account.to_api()}


@router.post("/auth/login")
def auth_login(payload: LoginRequest, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    if not (payload.email or "").strip() or not payload.password:
        raise InvalidInput("credentials_required", "Email and password are required")

    with connect(cfg.DB_DSN) as conn:
        account = verify_user_credentials(conn, payload.email, payload.password)
        if account is None:
            raise Unauthorized("invalid_credentials", "Invalid credentials")
        touch_last_login(conn, account.user_id)

    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        identity=account.email,
        role=account.role,
        expires_minutes=int(cfg.AUTH_TOKEN_EXPIRE_MINUTES),
    )
    return {"token": token, "token_type": "bearer", "role": account.role}


@router.get("/auth/me")
def auth_me(
    user: TokenClaims = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        account = find_account(conn, user.identity)
    return {"token": user.to_api(), "user": account.to_api() if account else None}


# -----------------------------
# Projects
# -----------------------------


@router.post("/projects", status_code=201)
def projects_create(
    payload: CreateProjectRequest,
    user: TokenClaims = Depends(require_project_creator),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        project = create_project(
            conn,
            name=payload.name,
            repository_url=payload.repositoryUrl,
            team_members=payload.teamMembers,
            created_by=user.identity,
        )
    return {"projectId": project.project_id, "message": "Project successfully registered"}


@router.get("/projects")
def projects_list(
    _user: Optional[TokenClaims] = Depends(get_optional_user),
    cfg: Config = Depends(get_config),
) -> List[Dict[str, Any]]:
    with connect(cfg.DB_DSN) as conn:
        return [p.to_api() for p in list_projects(conn)]


@router.delete("/projects/{project_id}")
def projects_delete(
    project_id: str,
    _user: TokenClaims = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        delete_project(conn, project_id)
    return {"message": f"Project {project_id} deleted"}


@router.post("/projects/{project_id}/add-tester")
def projects_add_tester(
    project_id: str,
    payload: AddTesterRequest,
    user: TokenClaims = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        project = add_tester(conn, project_id=project_id, tester_email=payload.testerEmail, added_by=user.identity)
    return {
        "message": f"Tester {payload.testerEmail} successfully added to project {project_id}",
        "project": project.to_api(),
    }


# -----------------------------
# Bugs
# -----------------------------


@router.post("/projects/{project_id}/bugs", status_code=201)
def bugs_report(
    project_id: str,
    payload: ReportBugRequest,
    user: TokenClaims = Depends(require_bug_reporter),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        bug = report_bug(
            conn,
            project_id=project_id,
            title=payload.title,
            severity=payload.severity,
            priority=payload.priority,
            description=payload.description,
            commit_link=payload.commitLink,
            reported_by=user.identity,
        )
    return {"bugId": bug.bug_id, "message": f"Bug successfully reported in project {project_id}"}


@router.get("/projects/{project_id}/bugs")
def bugs_list(
    project_id: str,
    _user: Optional[TokenClaims] = Depends(get_optional_user),
    cfg: Config = Depends(get_config),
) -> List[Dict[str, Any]]:
    with connect(cfg.DB_DSN) as conn:
        return [b.to_api() for b in list_bugs(conn, project_id)]


@router.put("/projects/{project_id}/bugs/{bug_id}/assign")
def bugs_assign(
    project_id: str,
    bug_id: str,
    payload: AssignBugRequest,
    _user: TokenClaims = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        bug = assign_bug(conn, project_id=project_id, bug_id=bug_id, assignee=payload.assignee)
    return {
        "message": f"Bug {bug_id} successfully assigned to {bug.assignee} in project {project_id}",
        "bug": bug.to_api(),
    }


@router.put("/projects/{project_id}/bugs/{bug_id}/resolve")
def bugs_resolve(
    project_id: str,
    bug_id: str,
    payload: ResolveBugRequest,
    _user: TokenClaims = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    with connect(cfg.DB_DSN) as conn:
        bug = resolve_bug(
            conn,
            project_id=project_id,
            bug_id=bug_id,
            status=payload.status,
            resolution_commit_link=payload.resolutionCommitLink,
        )
    return {
        "message": f"Bug {bug_id} successfully resolved in project {project_id}",
        "bug": bug.to_api(),
    }


# -----------------------------
# Error mapping
# -----------------------------


def _tracker_error(_request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code >= 500:
        _debug(f"internal error: {exc.detail} ({type(exc.__cause__).__name__ if exc.__cause__ else '-'})")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(p) for p in e.get("loc", ()) if p != "body") for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "detail": "invalid_request_body", "fields": fields},
    )


def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": detail, "detail": detail},
        headers=getattr(exc, "headers", None),
    )


def _unhandled_error(_request: Request, exc: Exception) -> JSONResponse:
    _debug(f"unhandled error: {type(exc).__name__}")
    body = InternalError().to_body()
    return JSONResponse(status_code=500, content=body)


def create_app(cfg: Config | None = None) -> FastAPI:
    """Build the API.

    Fails fast (ConfigError) when the configuration is incomplete, most
    importantly when AUTH_JWT_SECRET is not set.
    """
    cfg = (cfg or load_config()).validate()

    app = FastAPI(title="Bug Management API", version=__version__)
    app.state.cfg = cfg

    # CORS is mainly needed for local development with a separate frontend origin.
    origins = cfg.cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(TrackerError, _tracker_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(router)

    init_db(cfg.DB_DSN)
    _debug(f"API ready (public_reads={cfg.PUBLIC_READS} token_ttl_min={cfg.AUTH_TOKEN_EXPIRE_MINUTES})")
    return app
