"""Startup seeding of roles and the default administrator account."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from student_management.core.exceptions import AccountError, BootstrapError
from student_management.services.account_service import (
    ADMIN_ROLE,
    ROLES,
    add_to_role,
    create_role,
    create_user,
    get_user_by_email,
    role_exists,
)

logger = logging.getLogger(__name__)


def seed_identity(db: Session, admin_email: str, admin_password: str) -> None:
    """Make sure every role and the administrator account exist.

    Safe to run on every start: nothing is created twice. Any failure is
    raised as BootstrapError so the application refuses to start instead of
    running without an administrator.
    """
    try:
        for role in ROLES:
            if not role_exists(db, role):
                create_role(db, role)

        admin = get_user_by_email(db, admin_email)
        if admin is None:
            admin = create_user(db, admin_email, admin_password)
            logger.info(f"Created default administrator {admin.email}")
        add_to_role(db, admin, ADMIN_ROLE)
    except (AccountError, SQLAlchemyError) as e:
        db.rollback()
        logger.error(f"Identity bootstrap failed: {e}")
        raise BootstrapError(f"Could not seed roles and administrator account: {e}") from e
