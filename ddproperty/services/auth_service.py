from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ddproperty.config import settings
from ddproperty.exceptions import UnauthorizedError
from ddproperty.models.user import User

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_bearer = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    email: str, user_id: int, role: str, expires_delta: Optional[timedelta] = None
):
    encode = {"sub": email, "id": user_id, "role": role}
    expires = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    encode.update({"exp": expires})
    return jwt.encode(encode, SECRET_KEY, algorithm=ALGORITHM)


def authenticate_user(email: str, password: str, db: Session):
    user: User = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        return False
    if not pwd_context.verify(password, user.password_hash):
        return False
    return user


def decode_token(token: str) -> dict:
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    email: str = payload.get("sub")
    user_id: int = payload.get("id")
    role: str = payload.get("role")
    if not email or not user_id:
        raise UnauthorizedError()
    return {"email": email, "id": user_id, "role": role}


async def get_current_user(token: Annotated[str, Depends(oauth2_bearer)]):
    try:
        return decode_token(token)
    except JWTError:
        raise UnauthorizedError()
