"""Anti-forgery tokens for the HTML forms.

Each browser session gets a random nonce; forms carry the nonce signed with
itsdangerous so a token from another session, or an expired one, is rejected.
"""

import secrets

from itsdangerous import BadSignature, URLSafeTimedSerializer

from student_management.core.config import settings

SESSION_KEY = "csrf_nonce"
FORM_FIELD = "csrf_token"

_serializer = URLSafeTimedSerializer(settings.SESSION_SECRET_KEY, salt="csrf-token")


def generate_csrf_token(session: dict) -> str:
    nonce = session.get(SESSION_KEY)
    if not nonce:
        nonce = secrets.token_hex(16)
        session[SESSION_KEY] = nonce
    return _serializer.dumps(nonce)


def validate_csrf_token(session: dict, token: str | None) -> bool:
    nonce = session.get(SESSION_KEY)
    if not token or not nonce:
        return False
    try:
        value = _serializer.loads(token, max_age=settings.CSRF_TOKEN_MAX_AGE)
    except BadSignature:
        # SignatureExpired is a BadSignature too
        return False
    return secrets.compare_digest(str(value), nonce)
