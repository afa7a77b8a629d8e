"""
Authentication Service - Admin Login and Session Tokens
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from benzochem_admin.db.admins_repository import get_admin_repository
from benzochem_admin.models.admin_model import Admin, AdminRole
from benzochem_admin.schemas.auth_schemas import AdminInfo, TokenResponse
from benzochem_admin.utils.clock import utcnow
from benzochem_admin.utils.exceptions import AdminValidationError, AuthenticationError
from benzochem_admin.utils.security import (
    SESSION_DURATION_HOURS,
    create_jwt_token,
    decode_jwt_token,
    hash_password,
    verify_password,
)

load_dotenv()
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService:
    """Service for handling admin authentication operations"""

    def __init__(self):
        self.bootstrap_email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
        self.bootstrap_password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")

    def create_admin(
        self,
        db: Session,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: AdminRole = AdminRole.ADMIN,
    ) -> Admin:
        """
        Create an admin account with a hashed password

        Raises:
            AdminValidationError: If the email is taken or the password is weak
        """
        email = (email or "").strip().lower()
        if "@" not in email:
            raise AdminValidationError("A valid email address is required")

        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AdminValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        repo = get_admin_repository(db)
        if repo.get_by_email(email):
            raise AdminValidationError("An admin with this email already exists")

        try:
            admin = repo.create(
                email=email,
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                role=AdminRole(role),
                is_active=True,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Created admin account: {email}")
        return admin

    def authenticate(self, db: Session, email: str, password: str) -> Admin:
        """
        Verify admin credentials

        Unknown email, inactive account and wrong password all raise the
        same error.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        admin = get_admin_repository(db).get_by_email(email or "")

        if not admin or not verify_password(password or "", admin.password_hash):
            logger.warning(f"Failed admin login attempt for {email}")
            raise AuthenticationError("Invalid email or password")

        if not admin.is_active:
            logger.warning(f"Login attempt for inactive admin {admin.id}")
            raise AuthenticationError("Invalid email or password")

        admin.last_login_at = utcnow()
        db.commit()

        logger.info(f"Admin {admin.id} logged in")
        return admin

    def login(self, db: Session, email: str, password: str) -> TokenResponse:
        """Authenticate and issue a session token"""
        admin = self.authenticate(db, email, password)
        return self.issue_session_token(admin)

    def issue_session_token(self, admin: Admin) -> TokenResponse:
        token = create_jwt_token(admin.id, admin.email, AdminRole(admin.role).value)
        return TokenResponse(
            access_token=token,
            token_type="bearer",
            expires_in=SESSION_DURATION_HOURS * 3600,
            admin=AdminInfo.model_validate(admin),
        )

    def get_admin_from_token(self, db: Session, token: str) -> Admin:
        """
        Resolve a session token to an active admin

        Raises:
            AuthenticationError: If the token or admin is not valid
        """
        payload = decode_jwt_token(token)
        if not payload:
            raise AuthenticationError("Invalid or expired session token")

        admin = get_admin_repository(db).get_by_id(payload.get("admin_id", ""))
        if not admin:
            raise AuthenticationError("Admin not found")

        if not admin.is_active:
            raise AuthenticationError("Admin account is inactive")

        return admin

    def ensure_bootstrap_admin(self, db: Session) -> Optional[Admin]:
        """Create the first super admin from the environment, if configured"""
        if not self.bootstrap_email or not self.bootstrap_password:
            return None

        existing = get_admin_repository(db).get_by_email(self.bootstrap_email)
        if existing:
            return existing

        return self.create_admin(
            db,
            email=self.bootstrap_email,
            password=self.bootstrap_password,
            role=AdminRole.SUPER_ADMIN,
        )


auth_service = AuthService()
