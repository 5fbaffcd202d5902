from sqlalchemy.orm import Session

from core.exceptions import AuthenticationError, ConflictError
from models.users import User
from schemas.auth_schemas import CreateAdminRequest
from utils.hashing import verify_password, get_password_hash
from utils.logger import get_logger

logger = get_logger(__name__)


class AuthService:

    @staticmethod
    def create_admin(request: CreateAdminRequest, db: Session) -> User:
        email = request.email.lower().strip()
        if db.query(User).filter(User.email == email).first():
            logger.warning("Admin creation with existing email", extra={"email": email})
            raise ConflictError("Email already registered")

        user = User(
            email=email,
            full_name=request.full_name,
            hashed_password=get_password_hash(request.password),
            role="admin",
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info("Admin user created", extra={"user_id": user.id, "email": email})
        return user

    @staticmethod
    def authenticate_user(email: str, password: str, db: Session) -> User:
        user = db.query(User).filter(User.email == email.lower().strip()).first()

        if not user:
            logger.warning("Login failed - user not found", extra={"email": email})
            raise AuthenticationError("Could not validate user.")

        if not user.is_active:
            logger.warning("Login failed - inactive account", extra={"email": email})
            raise AuthenticationError("Could not validate user.")

        if not verify_password(password, user.hashed_password):
            logger.warning("Login failed - invalid password", extra={"user_id": user.id, "email": email})
            raise AuthenticationError("Could not validate user.")

        logger.debug("User authenticated successfully", extra={"user_id": user.id, "email": email})
        return user

    @staticmethod
    def get_active_user_by_id(db: Session, user_id: int) -> User | None:
        return db.query(User).filter(User.id == user_id, User.is_active == True).one_or_none()
