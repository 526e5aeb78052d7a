"""
Middleware package for the API.
"""
from storefront.middleware.logging_middleware import REQUEST_ID_HEADER, RequestLoggingMiddleware

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestLoggingMiddleware",
]
