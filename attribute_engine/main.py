import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from attribute_engine.core.config import settings
from attribute_engine.core.errors import StorageError
from attribute_engine.api.v1.api import api_router
from attribute_engine.db.base import Base
from attribute_engine.db.session import engine

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Attribute resolution and inheritance engine for catalog products and variants",
    version=settings.VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Attribute storage is unavailable"},
    )

# Include API router with prefix
app.include_router(api_router, prefix=settings.API_V1_STR)

# Create database tables
Base.metadata.create_all(bind=engine)

@app.get("/")
def root():
    return {"message": f"Welcome to the {settings.PROJECT_NAME}"}
