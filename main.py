"""
Main FastAPI application entry point.
"""
import uvicorn
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from models.schemas import ErrorMessage, ErrorResponse, Messages
from routers import timetable
from service.exceptions import (
    DuplicateTimetableError, InvalidIntervalError, NotFoundError, PeriodConflictError
)
from config import settings

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize the FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Timetable management API with teacher, classroom and break-time conflict checking.",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _field_label(field_path) -> str:
    """Convert an error location such as ("period", "end_time") to "Period -> End Time"."""
    field_name = " -> ".join(str(p) for p in field_path)
    
    # Convert snake_case to Title Case with spaces
    field_name = field_name.replace("_", " ").title()
    
    # Handle special cases for better readability
    field_name = field_name.replace("Days Of Week", "Days")
    field_name = field_name.replace("Day Of Week", "Day")
    field_name = field_name.replace("Duration In Minutes", "Duration")
    return field_name


# Custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert FastAPI validation errors to human-friendly format.
    
    Expected format:
    {
        "errors": {
            "field_name": ["Error message 1", "Error message 2"]
        }
    }
    """
    errors = {}
    
    for error in exc.errors():
        # Extract field name from error location
        field_path = error.get("loc", [])
        
        # Skip "body" prefix and build field name
        if len(field_path) > 1 and field_path[0] == "body":
            field_path = field_path[1:]
        
        field_name = _field_label(field_path)
        
        # Get error message
        error_msg = error.get("msg", "Invalid value")
        error_type = error.get("type", "")
        
        # Create human-friendly messages
        if error_type == "missing":
            error_msg = f"{field_name} is required."
        elif error_type == "too_short":
            error_msg = f"{field_name}: select at least one."
        elif "time" in error_type.lower():
            error_msg = f"{field_name} must be in HH:MM format (e.g., '09:00')."
        elif "greater_than" in error_type.lower():
            error_msg = f"{field_name} must be greater than the specified value."
        elif "less_than" in error_type.lower():
            error_msg = f"{field_name} must be less than the specified value."
        elif error_type == "literal_error":
            error_msg = f"{field_name} has an invalid value. {error_msg}"
        else:
            # Use the original message but make it more readable
            error_msg = f"{field_name}: {error_msg}"
        
        # Add to errors dict
        if field_name not in errors:
            errors[field_name] = []
        errors[field_name].append(error_msg)
    
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"errors": errors}
    )


@app.exception_handler(InvalidIntervalError)
async def invalid_interval_handler(request: Request, exc: InvalidIntervalError):
    """Report rejected time intervals in the same shape as validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"errors": {_field_label([exc.field]): [exc.message]}}
    )


def _error_response(status_code: int, exc, conflicts=None) -> JSONResponse:
    body = ErrorResponse(
        messages=Messages(error_message=[ErrorMessage(title=exc.title, message=exc.message)]),
        conflicts=conflicts or [],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(DuplicateTimetableError)
async def duplicate_timetable_handler(request: Request, exc: DuplicateTimetableError):
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(PeriodConflictError)
async def period_conflict_handler(request: Request, exc: PeriodConflictError):
    """Commit-time conflicts, including submissions that lost a race after pre-flight."""
    return _error_response(status.HTTP_409_CONFLICT, exc, exc.report.conflicts)


# Include routers
app.include_router(timetable.router, prefix="/api/v1", tags=["timetables"])

@app.get("/", tags=["health"])
async def root():
    """Root endpoint - API health check."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "healthy",
        "docs": "/docs"
    }

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}

if __name__ == "__main__":
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload
    )
