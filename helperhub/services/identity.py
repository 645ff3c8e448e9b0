"""
Identity provider: account creation, sign-in and bearer tokens.

Passwords are stored as salted PBKDF2-HMAC-SHA256 digests.  Tokens are
opaque random strings kept in the ``tokens`` collection with an expiry.
Signup also writes exactly one role bucket record (``employers`` or
``job_seekers``), which is what the role resolver reads later.
"""
import hashlib
import hmac
import os
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from dotenv import load_dotenv
from pymongo.errors import DuplicateKeyError

from helperhub.models.schemas import AccountRecord, Identity, Role, SignupPayload
from helperhub.services.store import DocumentStore
from helperhub.utils.exceptions import StoreUnavailableError, UnauthorizedError, ValidationFailedError
from helperhub.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "168"))
MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 200_000

IdentityListener = Callable[[Optional[Identity]], None]


def hash_password(password: str, salt: Optional[str] = None) -> tuple:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS)
    return digest.hex(), salt


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    candidate, _ = hash_password(password, salt)
    return hmac.compare_digest(candidate, password_hash)


class IdentityProvider:
    """Sign-up / sign-in / sign-out plus identity lookup by bearer token"""

    def __init__(
        self,
        identities: DocumentStore,
        tokens: DocumentStore,
        employers: DocumentStore,
        job_seekers: DocumentStore,
    ):
        self.identities = identities
        self.tokens = tokens
        self.buckets = {Role.EMPLOYER: employers, Role.JOB_SEEKER: job_seekers}
        self._listeners: List[IdentityListener] = []

    def on_identity_change(self, callback: IdentityListener) -> Callable[[], None]:
        """Register a callback fired on session start (identity) and end (None)."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, identity: Optional[Identity]) -> None:
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception as e:
                logger.error(f"Identity listener {listener!r} failed: {e}")

    async def _issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        await self.tokens.write(token, {
            "user_id": user_id,
            "created_at": datetime.utcnow(),
            "expires_at": datetime.utcnow() + timedelta(hours=TOKEN_TTL_HOURS),
        })
        return token

    async def sign_up(self, payload: SignupPayload) -> tuple:
        """Create an account and return ``(identity, token)``."""
        email = payload.email.strip().lower()

        if payload.password != payload.confirm_password:
            raise ValidationFailedError("Passwords do not match", field="confirm_password")
        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailedError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )

        existing = await self.identities.find({"email": email})
        if existing:
            raise ValidationFailedError("Email is already registered", field="email", value=email)

        user_id = uuid.uuid4().hex
        password_hash, salt = hash_password(payload.password)
        try:
            await self.identities.write(user_id, {
                "email": email,
                "display_name": payload.name,
                "phone": payload.phone,
                "role": payload.role.value,
                "password_hash": password_hash,
                "salt": salt,
                "created_at": datetime.utcnow(),
            })
        except StoreUnavailableError as e:
            # Lost a concurrent signup race on the unique email index
            if isinstance(e.cause, DuplicateKeyError):
                raise ValidationFailedError("Email is already registered", field="email", value=email) from e.cause
            raise

        account = AccountRecord(
            name=payload.name,
            email=email,
            phone=payload.phone,
            user_type=payload.role,
        )
        await self.buckets[payload.role].write(user_id, account.model_dump())

        identity = Identity(user_id=user_id, email=email, display_name=payload.name, phone=payload.phone)
        token = await self._issue_token(user_id)
        logger.info(f"{payload.role.value} registered successfully: {user_id}")
        self._notify(identity)
        return identity, token

    async def sign_in(self, email: str, password: str) -> tuple:
        """Verify credentials and return ``(identity, token)``."""
        matches = await self.identities.find({"email": email.strip().lower()})
        record = matches[0] if matches else None
        if not record or not verify_password(password, record.get("password_hash", ""), record.get("salt", "")):
            logger.warning(f"Failed sign-in attempt for {email}")
            raise UnauthorizedError("Invalid email or password")

        identity = self._to_identity(record)
        token = await self._issue_token(identity.user_id)
        logger.info(f"User signed in: {identity.user_id}")
        self._notify(identity)
        return identity, token

    async def sign_out(self, token: str) -> None:
        await self.tokens.delete(token)
        logger.info("User signed out")
        self._notify(None)

    async def current_identity(self, token: Optional[str]) -> Optional[Identity]:
        """Resolve a bearer token to an identity, or None when it is unknown or expired."""
        if not token:
            return None
        session = await self.tokens.read(token)
        if not session:
            return None
        expires_at = session.get("expires_at")
        if expires_at and expires_at < datetime.utcnow():
            logger.info(f"Expired token presented for {session.get('user_id')}")
            return None
        record = await self.identities.read(session["user_id"])
        if not record:
            return None
        return self._to_identity(record)

    @staticmethod
    def _to_identity(record: dict) -> Identity:
        return Identity(
            user_id=record["user_id"],
            email=record.get("email", ""),
            display_name=record.get("display_name"),
            phone=record.get("phone"),
        )
