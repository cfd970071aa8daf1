from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging
from pydantic import ValidationError as PydanticValidationError

from app.api.routes.assistant import router as assistant_router
from app.api.routes.cases import router as cases_router
from app.api.routes.diagnose import router as diagnose_router
from app.core.config import settings
from app.services.case_lifecycle import CaseBusy, CaseNotFound
from app.services.helpers.extractor import ParseError
from app.services.images import ImageRejected
from app.services.llm_client import GatewayError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.USE_DATABASE:
        from app.db.database import create_tables
        await create_tables()
    yield


app = FastAPI(
    title="FasalDoc",
    version="1.0.0",
    description="AI crop disease diagnosis and case tracking for Indian farmers",
    contact={
        "name": "FasalDoc Support",
        "email": "support@fasaldoc.example.com",
    },
    license_info={
        "name": "Proprietary",
    },
    lifespan=lifespan,
)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle FastAPI HTTPExceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Request failed", "detail": exc.detail}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = exc.errors()
    detail = "; ".join([f"{e['loc'][-1]}: {e['msg']}" for e in errors])

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation error", "detail": detail}
    )


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors from manual model construction."""
    errors = exc.errors()
    detail = "; ".join([f"{e['loc'][-1] if e['loc'] else 'field'}: {e['msg']}" for e in errors])

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation error", "detail": detail}
    )


@app.exception_handler(ImageRejected)
async def image_rejected_handler(request: Request, exc: ImageRejected):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid image", "detail": str(exc)}
    )


@app.exception_handler(CaseNotFound)
async def case_not_found_handler(request: Request, exc: CaseNotFound):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "Not found", "detail": str(exc)}
    )


@app.exception_handler(CaseBusy)
async def case_busy_handler(request: Request, exc: CaseBusy):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "Conflict", "detail": str(exc)}
    )


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """Model provider failed; the client may retry the whole request."""
    logger.warning(f"Model gateway failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "Model unavailable", "detail": str(exc)}
    )


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    logger.warning(f"Unparseable model reply on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "Analysis failed", "detail": f"Analysis failed: {exc}"}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    Logs full traceback but returns generic error to client.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=True
    )

    # Don't leak internal details
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred. Please contact support if the issue persists."
        }
    )


@app.get("/health")
def health():
    return {"status": "ok"}

app.include_router(diagnose_router, prefix="/v1")
app.include_router(cases_router, prefix="/v1")
app.include_router(assistant_router, prefix="/v1")
