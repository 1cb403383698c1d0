import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from fileshare.api.api_v1.api import api_router
from fileshare.core.config import settings
from fileshare.core.exceptions import ShareError
from fileshare.db.base import Base
from fileshare.db.session import engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}

@app.exception_handler(ShareError)
async def share_exception_handler(request: Request, exc: ShareError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": str(exc)},
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation Error: {exc}")
    return JSONResponse(
        status_code=422,
        content={"message": "Validation Error", "detail": jsonable_errors(exc)},
    )

# Form flags are validated inside the handlers, after request parsing
@app.exception_handler(ValidationError)
async def model_validation_exception_handler(request: Request, exc: ValidationError):
    logger.info(f"Validation Error: {exc}")
    return JSONResponse(
        status_code=422,
        content={"message": "Validation Error", "detail": jsonable_errors(exc)},
    )

def jsonable_errors(exc) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]

@app.on_event("startup")
def startup_event():
    # Create tables for development (in production use Alembic)
    Base.metadata.create_all(bind=engine)
    logger.info("Registered Routes:")
    for route in app.routes:
        if hasattr(route, "path"):
            logger.info(f"  {route.path}")

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
