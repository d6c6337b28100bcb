from logging_config import setup_logging

# Initialize logging BEFORE anything else
setup_logging()

from logging_config import get_logger, request_id_var
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from middleware import RequestLifecycleMiddleware
from routes import reimbursements, direct_expenses, expenses, uploads
from exceptions import FinanceHubError
from config import config

logger = get_logger("app")

app = FastAPI(title="FinanceHub API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL] if config.ENV == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request lifecycle middleware (request ID, context vars, duration logging)
app.add_middleware(RequestLifecycleMiddleware)

# ─── Error Mapping ───────────────────────────────────────────────────────────
# Engines raise typed errors; the status code is chosen from `kind` only.
ERROR_STATUS = {
    "validation": 400,
    "forbidden": 403,
    "not_found": 404,
    "invalid_transition": 409,
    "persistence": 500,
}

@app.exception_handler(FinanceHubError)
async def finance_hub_error_handler(request: Request, exc: FinanceHubError):
    status_code = ERROR_STATUS.get(exc.kind, 500)
    data = {"kind": exc.kind, "path": request.url.path, "details": exc.details}
    if status_code >= 500:
        logger.error(f"{exc.kind}: {exc.message}", exc_info=exc, extra={"data": data})
        body = {"detail": "Internal server error", "kind": exc.kind, "request_id": request_id_var.get("-")}
    else:
        logger.warning(f"{exc.kind}: {exc.message}", extra={"data": data})
        body = exc.to_dict()
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # Input values are dropped from the echoed errors
    errors = [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
    logger.warning("Request validation failed", extra={"data": {"path": request.url.path, "errors": errors}})
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder({"detail": "Validation error", "kind": "validation", "details": errors}),
    )

# REGISTER ROUTERS
app.include_router(reimbursements.staff_router)
app.include_router(reimbursements.finance_router)
app.include_router(reimbursements.admin_router)
app.include_router(direct_expenses.finance_router)
app.include_router(direct_expenses.admin_router)
app.include_router(expenses.router)
app.include_router(uploads.router)

logger.info("All routers registered, FinanceHub API ready")

@app.get("/")
async def root():
    return {"status": "online", "message": "FinanceHub API is running"}
