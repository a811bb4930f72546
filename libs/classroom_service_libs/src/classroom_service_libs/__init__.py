"""
Classroom Service Libraries Package.

Shared infrastructure for classroom services: structured logging, the error
handling contract, the Redis pub/sub client and HTTP middleware.
"""

from .error_handling import ClassroomError, Outcome
from .redis_client import RedisClient

__all__ = [
    "ClassroomError",
    "Outcome",
    "RedisClient",
]

# Framework-specific pieces should be imported directly from:
# - classroom_service_libs.error_handling.fastapi
# - classroom_service_libs.middleware
