import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import ADMIN_EMAIL, ADMIN_PASSWORD
from .database import get_db
from .errors import AuthenticationFailed, Unauthorized
from .models import Doctor, Patient
from .security_utils import constant_time_compare, create_jwt_token, mask_email, verify_jwt_token
from .shared.context import ADMIN, DOCTOR, PATIENT, ROLES, AuthContext

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches us and gets the failure envelope
security = HTTPBearer(auto_error=False)


def issue_token(ctx: AuthContext) -> str:
    """Signed token carrying the caller's role and subject id"""
    subject = "admin" if ctx.is_admin else str(ctx.subject_id)
    return create_jwt_token({"sub": subject, "role": ctx.role})


def authenticate_admin(email: Optional[str], password: Optional[str]) -> AuthContext:
    """Check the configured admin credentials"""
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:
        logger.error("❌ ADMIN_EMAIL / ADMIN_PASSWORD not configured")
        raise AuthenticationFailed("Invalid credentials")

    email_ok = constant_time_compare((email or "").strip().lower(), ADMIN_EMAIL.strip().lower())
    password_ok = constant_time_compare(password or "", ADMIN_PASSWORD)
    if not (email_ok and password_ok):
        logger.warning(f"⚠️ Failed admin login for {mask_email(email or '')}")
        raise AuthenticationFailed("Invalid credentials")

    logger.info("✅ Admin logged in")
    return AuthContext.admin()


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Turn the bearer token into an AuthContext, rejecting tokens for deleted accounts"""
    if not credentials or not credentials.credentials:
        raise AuthenticationFailed(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, length: {len(token)}")
        raise AuthenticationFailed("Invalid token format. Expected a valid JWT token.")

    payload = verify_jwt_token(token)
    if not payload:
        raise AuthenticationFailed("Invalid or expired token")

    role = payload.get("role")
    subject = payload.get("sub")
    if role not in ROLES or not subject:
        logger.error(f"❌ Token missing claims. Available claims: {list(payload.keys())}")
        raise AuthenticationFailed("Invalid token claims")

    if role == ADMIN:
        return AuthContext.admin()

    try:
        subject_id = int(subject)
    except (TypeError, ValueError) as e:
        raise AuthenticationFailed("Invalid token claims") from e

    model = Doctor if role == DOCTOR else Patient
    if db.query(model.id).filter(model.id == subject_id).first() is None:
        logger.warning(f"⚠️ Token for missing {role} {subject_id}")
        raise AuthenticationFailed("Account no longer exists")

    return AuthContext(role=role, subject_id=subject_id)


def require_role(*roles: str):
    """
    Dependency factory restricting an endpoint to the given roles

    Example:
        @router.get("/profile")
        def get_profile(ctx: AuthContext = Depends(require_role(DOCTOR))):
            ...
    """

    def dependency(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.role not in roles:
            logger.warning(f"⚠️ {ctx.role} token used on a {'/'.join(roles)} endpoint")
            raise Unauthorized("Not authorized to access this resource")
        return ctx

    return dependency


require_admin = require_role(ADMIN)
require_doctor = require_role(DOCTOR)
require_patient = require_role(PATIENT)
