from passlib.hash import bcrypt

from student_management.core.exceptions import PasswordPolicyError

PASSWORD_MIN_LENGTH = 6


def check_password_policy(password: str) -> None:
    """Raise PasswordPolicyError listing every rule the password breaks."""
    failures = []
    if len(password) < PASSWORD_MIN_LENGTH:
        failures.append(f"Passwords must be at least {PASSWORD_MIN_LENGTH} characters.")
    if not any(ch.isdigit() for ch in password):
        failures.append("Passwords must have at least one digit ('0'-'9').")
    if not any(ch.islower() for ch in password):
        failures.append("Passwords must have at least one lowercase ('a'-'z').")
    if not any(ch.isupper() for ch in password):
        failures.append("Passwords must have at least one uppercase ('A'-'Z').")
    if all(ch.isalnum() for ch in password):
        failures.append("Passwords must have at least one non alphanumeric character.")
    if failures:
        raise PasswordPolicyError(failures)


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.verify(password, password_hash)
