"""Authentication: password hashing, identity tokens and auth routes."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import schemas, crud
from .core import Settings, get_settings
from .database import get_db
from .errors import InvalidCredentials, InvalidToken, TokenExpired
from .models import Account

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)
router = APIRouter(prefix="/auth", tags=["auth"])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a plain password with its hashed value."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate a salted password hash using the configured context."""
    return pwd_context.hash(password)


@dataclass(frozen=True)
class TokenSettings:
    """Signing key, algorithm and lifetime of identity tokens."""

    secret_key: str
    algorithm: str
    expire_minutes: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSettings":
        return cls(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )


class Authenticator:
    """
    Verifies credentials and issues/validates bearer identity tokens.

    The token settings are fixed at construction; an instance holds no
    other state and can be shared between requests.
    """

    def __init__(self, token_settings: TokenSettings):
        self.token_settings = token_settings

    def issue_token(self, account_id: int, expires_delta: timedelta | None = None) -> str:
        """
        Create a signed token carrying the account id and an expiration.

        Args:
            account_id (int): Identity to embed.
            expires_delta (timedelta | None): Lifetime override.

        Returns:
            str: Encoded JWT.
        """
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.token_settings.expire_minutes)
        )
        return jwt.encode(
            {"sub": str(account_id), "exp": expire},
            self.token_settings.secret_key,
            algorithm=self.token_settings.algorithm,
        )

    def verify(self, token: str) -> int:
        """
        Decode a token and return the account id it carries.

        Raises:
            TokenExpired: If the token lifetime is over.
            InvalidToken: If the token is malformed, forged or has no
                usable subject.

        Returns:
            int: Account identifier.
        """
        try:
            payload = jwt.decode(
                token,
                self.token_settings.secret_key,
                algorithms=[self.token_settings.algorithm],
            )
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise InvalidToken()

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError):
            raise InvalidToken()

    def register(
        self, db: Session, account_in: schemas.AccountCreate
    ) -> tuple[Account, str]:
        """
        Create an account and log it in.

        Raises:
            Conflict: If the email is already registered.

        Returns:
            tuple[Account, str]: New account and its identity token.
        """
        account = crud.create_account(
            db, account_in, get_password_hash(account_in.password)
        )
        logger.info("Registered account %s", account.id)
        return account, self.issue_token(account.id)

    def login(self, db: Session, email: str, password: str) -> tuple[Account, str]:
        """
        Check credentials and issue a token.

        Unknown email and wrong password fail identically.

        Raises:
            InvalidCredentials: If the credentials are not accepted.
        """
        account = crud.get_account_by_email(db, email)
        if account is None or not verify_password(password, account.hashed_password):
            logger.warning("Rejected login attempt")
            raise InvalidCredentials()
        return account, self.issue_token(account.id)


@lru_cache()
def get_authenticator() -> Authenticator:
    """Return the process-wide authenticator built from settings."""
    return Authenticator(TokenSettings.from_settings(get_settings()))


def get_current_account(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Account:
    """
    Dependency that returns the account named by the bearer token.

    A missing token fails the same way as a bad one.
    """
    if not token:
        raise InvalidToken()
    account = crud.get_account(db, authenticator.verify(token))
    if account is None:
        raise InvalidToken()
    return account


@router.post(
    "/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED
)
def register(
    account_in: schemas.AccountCreate,
    db: Session = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Register a new account and return it with an identity token."""

    account, token = authenticator.register(db, account_in)
    return schemas.AuthResponse(user=schemas.AccountOut.model_validate(account), token=token)


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    credentials: schemas.LoginRequest,
    db: Session = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Authenticate with email and password."""

    account, token = authenticator.login(db, credentials.email, credentials.password)
    return schemas.AuthResponse(user=schemas.AccountOut.model_validate(account), token=token)


@router.post("/token", response_model=schemas.Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """
    OAuth2 password flow used by the interactive API docs.

    The form's ``username`` field carries the email address.

    Args:
        form_data (OAuth2PasswordRequestForm): Form with username and password.
        db (Session): Database session.
        authenticator (Authenticator): Credential checker.

    Returns:
        Token: Access token and token type.
    """
    _, access_token = authenticator.login(db, form_data.username, form_data.password)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/profile", response_model=schemas.ProfileOut)
def read_profile(
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Return the caller's account with profile image and phone numbers."""
    return crud.get_profile(db, current_account)


@router.put("/profile", response_model=schemas.AccountOut)
def update_profile(
    changes: schemas.AccountUpdate,
    current_account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Update first and/or last name of the caller's account."""
    return crud.update_account(db, current_account, changes.model_dump(exclude_unset=True))
