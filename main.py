from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from exceptions import (
    AuthError,
    ConflictError,
    ExpirationInPastError,
    NotFoundError,
    ReferralCodeAlreadyActiveError,
    ReferralCodeExpiredError,
    ReferralCodeNotFoundError,
    ReferralServiceError,
    ReferralsNotFoundError,
    StoreError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)
from logging_config import get_logger, setup_logging
from routes import auth, referral, referral_code

setup_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)

# Checked in order; the first matching class wins
ERROR_RESPONSES = [
    (UserAlreadyExistsError, status.HTTP_409_CONFLICT, "User already exists"),
    (ReferralCodeAlreadyActiveError, status.HTTP_409_CONFLICT, "An active referral code already exists"),
    (ConflictError, status.HTTP_409_CONFLICT, "Conflict"),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND, "User not found"),
    (ReferralCodeNotFoundError, status.HTTP_404_NOT_FOUND, "Referral code not found"),
    (ReferralsNotFoundError, status.HTTP_404_NOT_FOUND, "Referrals not found"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not found"),
    (ReferralCodeExpiredError, status.HTTP_400_BAD_REQUEST, "Referral code is not active"),
    (ExpirationInPastError, status.HTTP_400_BAD_REQUEST, "Expiration date must be in the future"),
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Invalid request data"),
    (AuthError, status.HTTP_401_UNAUTHORIZED, "Invalid credentials or token"),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
]

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("application_started", env=settings.env)


@app.exception_handler(ReferralServiceError)
async def service_error_handler(request: Request, exc: ReferralServiceError):
    status_code, detail = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
    for error_class, error_status, error_detail in ERROR_RESPONSES:
        if isinstance(exc, error_class):
            status_code, detail = error_status, error_detail
            break

    log = logger.error if status_code >= 500 else logger.info
    log("request_failed", path=request.url.path, status=status_code, error=exc.__class__.__name__)

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
    logger.info("request_invalid", path=request.url.path, fields=fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request data", "fields": fields},
    )


@app.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(referral_code.router)
app.include_router(referral.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.env == "development")
