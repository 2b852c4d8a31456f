"""User repository

Users are keyed by generated id; email uniqueness rests on a separate
``email::<email>`` pointer document written right after the user.
"""

from typing import List, Optional

import structlog

from app.errors import ConflictError, NotFoundError, StorageIntegrityError
from app.models.user import User, UserRole
from app.repositories.base import DocumentRepository
from app.schemas.auth import UserCreate
from app.schemas.common import validate_input
from app.security import get_password_hash, verify_password
from app.storage import keys
from app.storage.errors import DocumentExistsError, DocumentNotFoundError
from app.storage.query import DocumentQuery, Equals, IndexRebuild

logger = structlog.get_logger()


class UserRepository(DocumentRepository[User]):
    model = User
    doc_type = "user"

    def _role_query(self, role) -> DocumentQuery:
        role = UserRole(role).value
        return DocumentQuery(
            doc_type=self.doc_type,
            index_key=keys.users_by_role_key(role),
            conditions=[Equals("role", role)],
        )

    async def create(self, data) -> User:
        """
        Validate, check email uniqueness, write user + email pointer, index by
        role, then read both back. A failed read-back removes what was
        written and raises StorageIntegrityError.
        """
        payload = validate_input(UserCreate, data)

        if await self.find_by_email(payload.email) is not None:
            raise ConflictError("User already exists with this email")

        user = User(
            id=keys.new_user_id(),
            name=payload.name,
            email=payload.email,
            password=get_password_hash(payload.password),
            role=payload.role,
            phone=payload.phone,
            password_changed=payload.password_changed,
            created_at=keys.utcnow(),
        )
        pointer_key = keys.email_key(user.email)

        await self.store.insert(user.id, user.to_document())
        try:
            await self.store.insert(pointer_key, {"userId": user.id})
        except DocumentExistsError:
            # Lost a registration race for the same email
            await self._discard(user.id)
            raise ConflictError("User already exists with this email")
        except Exception:
            await self._discard(user.id)
            raise

        await self.indexes.advisory_add(keys.users_by_role_key(user.role), user.id)

        await self._verify_written(user, pointer_key)
        logger.info("User created", user_id=user.id, email=user.email, role=user.role)
        return user

    async def _verify_written(self, user: User, pointer_key: str) -> None:
        stored = await self.store.lookup(user.id)
        pointer = await self.store.lookup(pointer_key)

        problems = []
        if not stored or not stored.get("password"):
            problems.append("user password field missing after write")
        if not pointer or pointer.get("userId") != user.id:
            problems.append("email pointer missing after write")
        if not problems:
            return

        logger.error(
            "User write verification failed",
            user_id=user.id,
            email=user.email,
            problems=problems,
        )
        await self._discard(user.id)
        if pointer and pointer.get("userId") == user.id:
            await self._discard(pointer_key)
        raise StorageIntegrityError("; ".join(problems), key=user.id)

    async def _discard(self, key: str) -> None:
        """Best-effort removal used when undoing a partial create"""
        try:
            await self.store.remove(key)
        except DocumentNotFoundError:
            pass
        except Exception as e:
            logger.warning("Cleanup of partial write failed", key=key, error=str(e))

    async def find_by_email(self, email: str) -> Optional[User]:
        """User for ``email``; None whether the pointer or the user is missing"""
        pointer = await self.store.lookup(keys.email_key(email))
        if not pointer or not pointer.get("userId"):
            return None
        return await self.find_by_id(pointer["userId"])

    async def find_by_email_with_password(self, email: str) -> Optional[User]:
        """As ``find_by_email``, but the password hash must be present"""
        user = await self.find_by_email(email)
        if user is None:
            return None
        if not user.password:
            logger.error("Password field missing from user document", user_id=user.id)
            raise StorageIntegrityError("User password not found in database", key=user.id)
        return user

    async def find(self, role) -> List[User]:
        """Users holding ``role``, newest first"""
        return await self._find(self._role_query(role))

    async def save(self, user: User) -> User:
        """Rewrite the whole document; keeps the email pointer and role index in step"""
        previous = await self.store.lookup(user.id)
        if previous is None:
            raise NotFoundError(f"User not found: {user.id}")

        user = user.model_copy(
            update={
                "email": user.email.lower(),
                "role": UserRole(user.role).value,
                "updated_at": keys.utcnow(),
            }
        )
        old_email = previous.get("email")
        email_changed = bool(old_email) and old_email != user.email

        if email_changed:
            owner = await self.find_by_email(user.email)
            if owner is not None and owner.id != user.id:
                raise ConflictError("User already exists with this email")

        await self.store.upsert(user.id, user.to_document())

        if email_changed:
            await self.store.upsert(keys.email_key(user.email), {"userId": user.id})
            await self._discard(keys.email_key(old_email))
        if previous.get("role") != user.role:
            await self.indexes.advisory_add(keys.users_by_role_key(user.role), user.id)
        return user

    async def set_password(self, user: User, password: str, *, changed: bool = True) -> User:
        user = user.model_copy(
            update={"password": get_password_hash(password), "password_changed": changed}
        )
        return await self.save(user)

    def verify_password(self, user: User, password: str) -> bool:
        if not user.password:
            return False
        return verify_password(password, user.password)

    async def delete(self, user_id: str) -> None:
        """Remove the user and its email pointer; role index entries go stale"""
        user = await self.get(user_id)
        await self._remove(user.id)
        await self._discard(keys.email_key(user.email))
        logger.info("User deleted", user_id=user.id)

    async def rebuild_role_index(self, role) -> IndexRebuild:
        return await self.queries.rebuild_index(self._role_query(role))
