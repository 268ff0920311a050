"""
API Dependencies for FastAPI Router Modules
Shared dependencies for authentication and service access
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from agrosync.core.services import SyncServices

# Initialize security scheme
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


class APIAuthenticator:
    """Centralized API authentication handler"""

    def __init__(self, api_key: str):
        self.api_key = api_key

    def verify_api_key(self, credentials: Optional[HTTPAuthorizationCredentials] = None) -> bool:
        """Verify API key from authorization header"""
        if not credentials:
            return False

        return secrets.compare_digest(credentials.credentials, self.api_key)

    def raise_unauthorized(self):
        """Raise unauthorized error"""
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )


def init_api_dependencies(app, api_key: str, services: SyncServices):
    """Attach the authenticator and services to the application state"""
    app.state.authenticator = APIAuthenticator(api_key)
    app.state.services = services


async def verify_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> bool:
    """FastAPI dependency for API key verification"""
    authenticator: Optional[APIAuthenticator] = getattr(request.app.state, 'authenticator', None)
    if authenticator is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API authentication not initialized"
        )

    if not authenticator.verify_api_key(credentials):
        authenticator.raise_unauthorized()

    return True


async def get_services(request: Request) -> SyncServices:
    """FastAPI dependency to get the wired services"""
    services = getattr(request.app.state, 'services', None)
    if services is None:
        logger.error("Services not initialized - please check init_api_dependencies")
        raise RuntimeError("Services not available - please check initialization")
    return services
