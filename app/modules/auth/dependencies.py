"""
Authentication dependencies for FastAPI.
"""
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt

from app.dependencies.dbDependecies import get_db
from app.modules.auth.models import User
from app.modules.auth.schemas import AuthContext, ALL_ROLES
from app.modules.auth.utils import decode_token
from app.common.exceptions import ForbiddenError

# Security scheme
security = HTTPBearer()

class AuthDependencies:
    """Reusable authentication dependencies."""

    @staticmethod
    def _load_user(token: str, db: Session) -> User:
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        try:
            payload = decode_token(token)
            user_id = payload.get("sub")
            if user_id is None or payload.get("type", "access") != "access":
                raise credentials_exception
            user_uuid = UUID(user_id)
        except (jwt.PyJWTError, ValueError):
            raise credentials_exception

        user = db.query(User).filter(User.id == user_uuid).first()
        if user is None or not user.is_active:
            raise credentials_exception
        return user

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """Current user from the bearer token."""
        return AuthDependencies._load_user(credentials.credentials, db)

    @staticmethod
    def get_auth_context(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> AuthContext:
        """
        Authentication context (user id + role) for the request.
        The role is always read from the database so a demoted user loses
        access without waiting for the token to expire.
        """
        user = AuthDependencies._load_user(credentials.credentials, db)
        return AuthContext(user_id=user.id, user_role=user.role.value)

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependency requiring one of the given roles.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if auth_context.user_role not in allowed_roles:
                raise ForbiddenError(
                    f"One of these roles is required: {', '.join(allowed_roles)}"
                )
            return auth_context
        return role_checker

    @staticmethod
    def require_any_role():
        """Any authenticated, active user."""
        return AuthDependencies.require_role(ALL_ROLES)

# Dependency instances
get_current_user = AuthDependencies.get_current_user
get_auth_context = AuthDependencies.get_auth_context
require_any_role = AuthDependencies.require_any_role
