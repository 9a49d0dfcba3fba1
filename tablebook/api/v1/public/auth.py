from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from tablebook.db.session import get_db
from tablebook.core.config import settings
from tablebook.core.security import create_access_token, cookie_params, get_password_hash, verify_password

from tablebook.api.deps import get_current_user
from tablebook.models.user import User
from tablebook.schemas.common import MessageResponse
from tablebook.schemas.user import UserCreate, AdminCreate, UserLogin, Token, User as UserSchema

router = APIRouter(prefix="/auth", tags=["auth"])


def _build_token_response(user: User, response: Response) -> Token:
    access_token = create_access_token(subject=str(user.id), role=user.role)
    response.set_cookie(settings.AUTH_COOKIE_NAME, access_token, **cookie_params())
    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserSchema.model_validate(user),
    )


def _create_user(body: UserCreate, role: str, db: Session) -> User:
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    user = User(
        email=body.email,
        password_hash=get_password_hash(body.password),
        full_name=body.full_name,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, response: Response, db: Session = Depends(get_db)):
    user = _create_user(body, "user", db)
    return _build_token_response(user, response)


@router.post("/admin/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def admin_register(body: AdminCreate, response: Response, db: Session = Depends(get_db)):
    if body.admin_secret != settings.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin secret",
        )
    user = _create_user(body, "admin", db)
    return _build_token_response(user, response)


@router.post("/login", response_model=Token)
def login(body: UserLogin, response: Response, db: Session = Depends(get_db)):
    """Authenticate with email + password; the token is returned and set as a cookie."""
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return _build_token_response(user, response)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    """Clear the auth cookie. Tokens are stateless; bearer clients just discard theirs."""
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserSchema)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user
