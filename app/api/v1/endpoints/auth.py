from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.constants.constants import ErrorKind, UserRole
from app.core.database import aget_db
from app.core.limiter import limiter
from app.core.security import create_jwt_token, get_current_user, hash_password, verify_password
from app.core.config import settings
from app.models.invitation import Invitation
from app.models.user import User
from app.schemas.authSchema import CurrentUserResponse, LoginRequest, RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def auth_error(status_code: int, message: str, details: str, kind: ErrorKind) -> HTTPException:
    """Structured auth failure; the code lets clients pick the right guidance."""
    return HTTPException(
        status_code=status_code,
        detail={"error": message, "details": details, "code": kind.value},
    )


def account_exists_error() -> HTTPException:
    return auth_error(
        status.HTTP_400_BAD_REQUEST,
        "Account already exists",
        "An account with this email address already exists. Please sign in instead.",
        ErrorKind.ACCOUNT_EXISTS,
    )


async def find_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


def issue_token(user: User) -> str:
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role.value if hasattr(user.role, "value") else user.role,
    }
    return create_jwt_token(payload, expires_delta=timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS))


# -----------------------------
# Register
# -----------------------------
@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(aget_db)):
    """
    Create an attendee (or host) account and return a JWT.
    Pending invitations sent to this email are linked to the new user.
    """
    if await find_user_by_email(db, payload.email):
        raise account_exists_error()

    try:
        user = User(
            name=payload.name.strip(),
            email=payload.email,
            password=hash_password(payload.password),
            role=payload.role or UserRole.attendee,
        )
        db.add(user)
        await db.flush()

        linked = await db.execute(
            update(Invitation)
            .where(Invitation.email == user.email, Invitation.invited_user_id.is_(None))
            .values(invited_user_id=user.id)
        )
        if linked.rowcount:
            logger.info(f"🔗 Linked {linked.rowcount} pending invitation(s) to {user.email}")

        await db.commit()
        await db.refresh(user)
    except IntegrityError:
        # Another request registered the same email after our check
        await db.rollback()
        logger.warning(f"⚠️ Concurrent registration for {payload.email}")
        raise account_exists_error()
    except Exception as e:
        await db.rollback()
        logger.error(f"Registration error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(f"✅ Registered user {user.email} ({user.role.value})")
    return TokenResponse(token=issue_token(user))


# -----------------------------
# Login
# -----------------------------
@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, payload: LoginRequest, db: AsyncSession = Depends(aget_db)):
    """Exchange email and password for a JWT."""
    user = await find_user_by_email(db, payload.email.strip())
    if not user:
        raise auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "Account not found",
            "No account exists with this email address. Please create an account first.",
            ErrorKind.ACCOUNT_NOT_FOUND,
        )

    if not verify_password(payload.password, user.password):
        raise auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid password",
            "The password you entered is incorrect. Please try again.",
            ErrorKind.INVALID_PASSWORD,
        )

    return TokenResponse(token=issue_token(user))


# -----------------------------
# Get Current User
# -----------------------------
@router.get("/me", response_model=CurrentUserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """
    Return current authenticated user info
    """
    return current_user
