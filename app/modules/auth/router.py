from fastapi import APIRouter, Depends

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_current_user
from app.modules.auth.models import User
from app.modules.auth.schemas import UserLogin, UserOut, TokenResponse

auth_router = APIRouter()

@auth_router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: db_dependency):
    """
    Login with email and password; returns a bearer access token.
    """
    auth_service = AuthService(db)
    return auth_service.login(credentials.email, credentials.password)

@auth_router.get("/me", response_model=UserOut)
async def get_me(current_user: User = Depends(get_current_user)):
    """
    Current user profile.
    """
    return current_user
