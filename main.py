"""
Main application entry point for the Users API.

This module initializes the FastAPI application, configures logging and
CORS, registers the exception handlers that produce the response
envelope, and includes the users router.

Modules:
- FastAPI: Web framework
- CORSMiddleware: Middleware for handling CORS
- app.database: Database engine
- app.models: SQLAlchemy models
- app.users: Users router
- app.handlers: Exception handlers
- app.core: Application settings
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import engine
from app import models
from app.core import configure_logging, get_settings
from app.handlers import setup_exception_handlers
from app.users import router as users_router

configure_logging()

# Create tables (for development only)
models.Base.metadata.create_all(bind=engine)

settings = get_settings()

# Initialize FastAPI application
app = FastAPI(title="Users API")

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

app.include_router(users_router)


@app.get("/")
def root():
    """
    Root endpoint for the API.

    Returns a simple JSON message directing users to the Swagger UI.

    Returns:
        dict: JSON message with information about the API
    """
    return {"msg": "Users API. Visit /docs for Swagger UI"}
