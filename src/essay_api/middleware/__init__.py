"""
Middleware components for the Essay Question API.

Provides request validation and security middleware for the FastAPI application.
"""

from essay_api.middleware.request_size import request_size_validator
from essay_api.middleware.security_headers import security_headers_middleware

__all__ = ["request_size_validator", "security_headers_middleware"]
