"""City Explorer API layer -- routes, schemas, and middleware."""

from city_explorer.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from city_explorer.api.routes import router
from city_explorer.api.schemas import ErrorResponse, ExploreResponse, HealthResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "ExploreResponse",
    "HealthResponse",
]
