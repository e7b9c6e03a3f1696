import logging
from typing import Optional

from sqlalchemy.orm import Session

from student_management.core.exceptions import AccountError, AuthenticationError, DuplicateAccountError
from student_management.core.security import check_password_policy, hash_password, verify_password
from student_management.models.user import Role, User
from student_management.schemas.auth import UserRead

logger = logging.getLogger(__name__)

ADMIN_ROLE = "Admin"
STUDENT_ROLE = "Student"
ROLES = (ADMIN_ROLE, STUDENT_ROLE)

def _normalize_email(email: str) -> str:
    return email.strip().lower()


def get_role(db: Session, name: str) -> Optional[Role]:
    return db.query(Role).filter(Role.name == name).first()


def role_exists(db: Session, name: str) -> bool:
    return get_role(db, name) is not None


def create_role(db: Session, name: str) -> Role:
    role = Role(name=name)
    db.add(role)
    db.commit()
    db.refresh(role)
    logger.info(f"Created role {name}")
    return role


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()


def create_user(db: Session, email: str, password: str) -> User:
    """Create a principal after checking the password policy and email uniqueness."""
    check_password_policy(password)
    if get_user_by_email(db, email):
        raise DuplicateAccountError(_normalize_email(email))

    user = User(email=_normalize_email(email), password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created account {user.email} (ID: {user.id})")
    return user


def add_to_role(db: Session, user: User, role_name: str) -> User:
    role = get_role(db, role_name)
    if role is None:
        raise AccountError(f"Role {role_name} does not exist.")
    if not user.has_role(role_name):
        user.roles.append(role)
        db.commit()
        db.refresh(user)
        logger.info(f"Added {user.email} to role {role_name}")
    return user


def register_user(db: Session, email: str, password: str, role_name: str = STUDENT_ROLE) -> User:
    user = create_user(db, email, password)
    return add_to_role(db, user, role_name)


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info(f"Login failed for {email}")
        raise AuthenticationError("Invalid email or password.")
    logger.info(f"Login succeeded for {user.email}")
    return user


def to_user_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        roles=user.role_names,
        student_id=user.student.id if user.student else None
    )
