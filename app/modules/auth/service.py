from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timezone
import logging

from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import UserCreate, TokenResponse, UserOut
from app.modules.auth.utils import hash_password, verify_password, create_access_token
from app.common.exceptions import BadRequestError, InternalError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def create_user(self, user_data: UserCreate) -> User:
        """Create a user with a hashed password. Used by seeding and admins."""
        existing = self.db.query(User).filter(User.email == user_data.email).first()
        if existing:
            raise BadRequestError("Email already registered", field="email")

        try:
            user = User(
                email=user_data.email,
                name=user_data.name,
                password=hash_password(user_data.password),
                role=UserRole(user_data.role.value),
                is_active=True,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            logger.info(f"User {user.email} created with role {user.role.value}")
            return user
        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating user: {e}")
            raise InternalError(f"Error creating user: {str(e)}")

    def login(self, email: str, password: str) -> TokenResponse:
        user = self.db.query(User).filter(User.email == email).first()

        if not user or not verify_password(password, user.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect credentials"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Inactive account"
            )

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)

        access_token = create_access_token({
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
        })

        return TokenResponse(
            access_token=access_token,
            user=UserOut.model_validate(user)
        )
