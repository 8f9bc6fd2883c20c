"""
Authentication and User Administration

The couple logs in with a username and a password. Passwords are stored
as the lowercase hex SHA-256 of the UTF-8 text.

IMPORTANT: Documents written by the first version of the app may hold
the password in plain text. authenticate() accepts either form; setting a
new password stores it hashed.

Partners point at each other (A.partner_user_id == B.id and
B.partner_user_id == A.id). The store does not enforce it, so save_user
writes both sides.
"""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Optional

from duogesto.audit import AuditLogger
from duogesto.config import AppSettings
from duogesto.models.audit import AuditEventType
from duogesto.models.normalize import to_document, user_from_document
from duogesto.models.records import User
from duogesto.services.storage import Collection, NotFoundError, RecordStore


# =============================================================================
# EXCEPTIONS
# =============================================================================

class AuthenticationError(Exception):
    """Base class for login failures."""


class UserNotFoundError(AuthenticationError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User not found: {username}")


class InvalidPasswordError(AuthenticationError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Wrong password for {username}")


class PermissionDeniedError(Exception):
    """The user's role does not allow the action."""


# =============================================================================
# HELPERS
# =============================================================================

def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, stored: Optional[str]) -> bool:
    """Check a password against a stored hash (or legacy plain text)."""
    if not stored:
        return False
    stored_bytes = stored.encode("utf-8")
    if hmac.compare_digest(hash_password(password).encode("ascii"), stored_bytes):
        return True
    return hmac.compare_digest(password.encode("utf-8"), stored_bytes)


def couple_ids(user: User) -> list[str]:
    """Ids whose records count for this user: the user and the partner."""
    ids = [user.id] if user.id else []
    if user.partner_user_id and user.partner_user_id not in ids:
        ids.append(user.partner_user_id)
    return ids


def require_admin(user: User) -> None:
    if not user.is_admin:
        raise PermissionDeniedError(
            f"User {user.username} is not allowed to manage users"
        )


# =============================================================================
# SERVICE
# =============================================================================

class UserService:
    """Login and user administration over the users collection."""

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._settings = settings or AppSettings()
        self._audit_logger = audit_logger

    async def list_users(self) -> list[User]:
        docs = await self._store.list_records(Collection.USERS)
        return [user_from_document(doc) for doc in docs]

    async def get_user(self, user_id: str) -> User:
        doc = await self._store.get(Collection.USERS, user_id)
        if doc is None:
            raise NotFoundError(Collection.USERS, user_id)
        return user_from_document(doc)

    async def find_by_username(self, username: str) -> Optional[User]:
        wanted = username.strip().lower()
        for user in await self.list_users():
            if user.username == wanted:
                return user
        return None

    async def authenticate(self, username: str, password: str) -> User:
        """
        Log a user in.

        Raises:
            UserNotFoundError: no user with that username.
            InvalidPasswordError: the password does not match.
        """
        user = await self.find_by_username(username)
        if user is None:
            if self._audit_logger:
                await self._audit_logger.log_login(username, False, "unknown_user")
            raise UserNotFoundError(username)

        if not verify_password(password, user.password_hash):
            if self._audit_logger:
                await self._audit_logger.log_login(user.username, False, "wrong_password")
            raise InvalidPasswordError(user.username)

        if self._audit_logger:
            await self._audit_logger.log_login(user.username, True)
        return user

    async def _unlink(self, user_id: Optional[str], from_id: Optional[str]) -> None:
        """Clear user_id's partner link if it still points at from_id."""
        if not user_id or not from_id:
            return
        doc = await self._store.get(Collection.USERS, user_id)
        if doc is not None and user_from_document(doc).partner_user_id == from_id:
            # partnerId is the key written by the first version of the app.
            await self._store.update(
                Collection.USERS, user_id, {"partner_user_id": None, "partnerId": None}
            )

    async def save_user(
        self,
        fields: dict,
        user_id: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """
        Create (user_id=None) or update a user.

        A new user without an explicit password gets the default one.
        Setting partner_user_id also links the partner back to this user;
        whoever either of them was linked to before is unlinked.

        Raises:
            NotFoundError: user_id or the partner does not exist. Nothing
                is written in that case.
        """
        changes = {k: v for k, v in fields.items() if k not in ("id", "password_hash")}

        if user_id is None:
            previous_partner = None
            user = User(
                **changes,
                password_hash=hash_password(password or self._settings.default_user_password),
                created_at=datetime.now(timezone.utc),
            )
        else:
            current = await self.get_user(user_id)
            previous_partner = current.partner_user_id
            update = dict(changes)
            if password:
                update["password_hash"] = hash_password(password)
            user = User.model_validate({**current.model_dump(), **update})

        partner = None
        if user.partner_user_id and user.partner_user_id != user_id:
            partner = await self.get_user(user.partner_user_id)

        if user_id is None:
            user.id = await self._store.create(Collection.USERS, to_document(user))
        else:
            await self._store.update(Collection.USERS, user_id, to_document(user))

        if previous_partner != user.partner_user_id:
            await self._unlink(previous_partner, user.id)

        if partner is not None and partner.partner_user_id != user.id:
            await self._unlink(partner.partner_user_id, partner.id)
            await self._store.update(
                Collection.USERS,
                partner.id,
                {"partner_user_id": user.id},
            )

        if self._audit_logger:
            await self._audit_logger.log_record_changed(
                AuditEventType.USER_SAVED,
                Collection.USERS.value,
                user.id,
                user.username,
            )
        return user
