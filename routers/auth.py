from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from utils.deps import db_dependency, settings_dependency, admin_dependency
from schemas.auth_schemas import Token
from services.auth_service import AuthService
from services.token_service import TokenService
from middleware.rate_limiter import limiter
from schemas.common import ok
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/token", response_model=Token)
@limiter.limit("5/minute")
async def login_for_access_token(request: Request, db: db_dependency, settings: settings_dependency,
                                 form_data: OAuth2PasswordRequestForm = Depends()):
    user = AuthService.authenticate_user(form_data.username, form_data.password, db)

    token = TokenService.create_access_token(settings, user.email, user.id, user.role)

    logger.info(
        "User logged in successfully",
        extra={"user_id": user.id, "email": user.email}
    )

    return {"access_token": token, "token_type": "bearer"}


@router.get("/me")
async def get_me(admin: admin_dependency):
    return ok(admin)
