"""API package exports."""

from identity_broker.api.auth import router as auth_router
from identity_broker.api.middleware import CorrelationIdMiddleware
from identity_broker.api.routes import router
from identity_broker.api.users import router as users_router

__all__ = ["router", "auth_router", "users_router", "CorrelationIdMiddleware"]
