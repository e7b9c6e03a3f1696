import uuid

import jwt
from datetime import datetime, timedelta
from sqlalchemy.orm import Session

from student_management.core.config import settings
from student_management.core.exceptions import AuthenticationError
from student_management.models.token import RefreshToken
from student_management.models.user import User

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def create_access_token(user: User) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": str(user.id), "email": user.email, "roles": user.role_names,
                 "type": ACCESS_TOKEN_TYPE, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_refresh_token(db: Session, user: User) -> str:
    now = datetime.utcnow()
    expire = now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    # jti makes every refresh token unique, even two issued in the same second
    to_encode = {"sub": str(user.id), "type": REFRESH_TOKEN_TYPE, "exp": expire, "jti": uuid.uuid4().hex}
    refresh_token = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    db_token = RefreshToken(
        token=refresh_token,
        user_id=user.id,
        created_at=now,
        expired_at=expire
    )
    db.add(db_token)
    db.commit()
    return refresh_token


def rotate_refresh_token(db: Session, refresh_token: str) -> tuple[User, str, str]:
    try:
        payload = jwt.decode(refresh_token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Refresh token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    if payload.get("type") != REFRESH_TOKEN_TYPE:
        raise AuthenticationError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    db_token = db.query(RefreshToken).filter_by(token=refresh_token).first()
    if not db_token or db_token.is_revoked:
        raise AuthenticationError("Refresh token is invalid or already used")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise AuthenticationError("Invalid token payload")

    db_token.is_revoked = True
    db.commit()

    return user, create_access_token(user), create_refresh_token(db, user)
