from fastapi import FastAPI, Depends, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException
import structlog

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgdesk.config import settings
from orgdesk.database import init_db, close_db, get_db
from orgdesk.logging_config import setup_logging
from orgdesk.middleware.correlation import CorrelationIdMiddleware
from orgdesk.middleware.rate_limit import rate_limit_middleware
from orgdesk.services.cache import cache
from orgdesk.services.db_errors import translate_integrity_error

# Import models so they are registered with Base.metadata
import orgdesk.models  # noqa: F401

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("starting_orgdesk", env=settings.ENVIRONMENT)
    await init_db()
    yield
    await cache.close()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Exception handlers. Every error body carries an "error" message.
# ---------------------------------------------------------------------------

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    content = detail if isinstance(detail, dict) and "error" in detail else {"error": detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


def _field_path(loc) -> str:
    # drop the "body" / "query" / "path" prefix
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": _field_path(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    error = translate_integrity_error(exc)
    logger.warning(
        "integrity_error",
        code=error.code,
        field=error.field,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.message, "code": error.code, "field": error.field},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


app.middleware("http")(rate_limit_middleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "X-Request-ID"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)


@app.get("/health", tags=["System"])
async def health(response: Response, db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("health_check_db_failed", error=str(e))
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "unhealthy", "database": "disconnected"}
    return {"status": "healthy", "database": "connected"}


# --- Routers ---
from orgdesk.routes.auth import router as auth_router  # noqa: E402
from orgdesk.routes.workspaces import router as workspaces_router  # noqa: E402
from orgdesk.routes.companies import router as companies_router  # noqa: E402
from orgdesk.routes.departments import router as departments_router  # noqa: E402
from orgdesk.routes.locations import router as locations_router  # noqa: E402
from orgdesk.routes.customers import router as customers_router  # noqa: E402
from orgdesk.routes.suppliers import router as suppliers_router  # noqa: E402
from orgdesk.routes.files import router as files_router  # noqa: E402
from orgdesk.routes.settings import (  # noqa: E402
    router as company_settings_router,
    workspace_router as workspace_settings_router,
)
from orgdesk.routes.system import (  # noqa: E402
    router as system_router,
    company_router as company_modules_router,
)
from orgdesk.routes.employees import router as employees_router  # noqa: E402
from orgdesk.routes.attendance import router as attendance_router  # noqa: E402
from orgdesk.routes.audit_logs import router as audit_logs_router  # noqa: E402

WORKSPACE = "/api/workspaces/{workspace_id}"
COMPANY = WORKSPACE + "/companies/{company_id}"

app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(workspaces_router, prefix="/api/workspaces", tags=["Workspaces"])
app.include_router(workspace_settings_router, prefix=f"{WORKSPACE}/settings", tags=["Settings"])
app.include_router(audit_logs_router, prefix=f"{WORKSPACE}/audit-logs", tags=["Audit Logs"])
app.include_router(companies_router, prefix=f"{WORKSPACE}/companies", tags=["Companies"])
app.include_router(departments_router, prefix=f"{COMPANY}/departments", tags=["Departments"])
app.include_router(locations_router, prefix=f"{COMPANY}/locations", tags=["Locations"])
app.include_router(customers_router, prefix=f"{COMPANY}/customers", tags=["Customers"])
app.include_router(suppliers_router, prefix=f"{COMPANY}/suppliers", tags=["Suppliers"])
app.include_router(files_router, prefix=f"{COMPANY}/files", tags=["Files"])
app.include_router(company_settings_router, prefix=f"{COMPANY}/settings", tags=["Settings"])
app.include_router(company_modules_router, prefix=f"{COMPANY}/modules", tags=["Modules"])
app.include_router(employees_router, prefix=f"{COMPANY}/employees", tags=["Employees"])
app.include_router(attendance_router, prefix=f"{COMPANY}/attendance", tags=["Attendance"])
app.include_router(system_router, prefix="/api/system", tags=["System"])
