import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_api.core.errors import ClinicError
from clinic_api.core.settings import settings, validate_settings
from clinic_api.db.session import engine
from clinic_api.models import Base
from clinic_api.routers.analytics import router as analytics_router
from clinic_api.routers.appointments import router as appointments_router
from clinic_api.routers.audit import router as audit_router
from clinic_api.routers.auth import router as auth_router
from clinic_api.routers.camp_submissions import router as camp_submissions_router
from clinic_api.routers.cdn import router as cdn_router
from clinic_api.routers.medical_history import router as medical_history_router
from clinic_api.routers.patients import router as patients_router
from clinic_api.routers.visits import router as visits_router

app = FastAPI(title="Dental Clinic API", version="0.1.0")
logger = logging.getLogger("dental_clinic.startup")
error_logger = logging.getLogger("dental_clinic.errors")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_LOCATIONS = {"body", "query", "path", "header"}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _readable(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        parts = [str(part) for part in error.get("loc", ()) if part not in _LOCATIONS]
        location = ".".join(parts)
        message = error.get("msg", "Invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return "; ".join(problems) or "Invalid request"


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error(400, _readable(exc))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    error_logger.warning("Constraint violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(400, "Request violates a data constraint")


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    return _error(409, "Record was modified concurrently")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = request.headers.get("x-request-id")
    error_logger.exception("Unhandled server error", extra={"request_id": request_id})
    payload = {"error": "Internal server error"}
    if request_id:
        payload["request_id"] = request_id
    return JSONResponse(status_code=500, content=payload)


@app.on_event("startup")
def startup():
    validate_settings(settings)
    Base.metadata.create_all(bind=engine)
    logger.info("Dental clinic API ready (env=%s).", settings.app_env)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(auth_router, prefix="/api")
app.include_router(patients_router, prefix="/api")
app.include_router(medical_history_router, prefix="/api")
app.include_router(visits_router, prefix="/api")
app.include_router(appointments_router, prefix="/api")
app.include_router(analytics_router, prefix="/api")
app.include_router(audit_router, prefix="/api")
app.include_router(camp_submissions_router, prefix="/api")
app.include_router(cdn_router, prefix="/api")
