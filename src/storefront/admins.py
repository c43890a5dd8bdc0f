"""AdminDirectory: admin accounts with unique emails and bcrypt hashes."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import bcrypt

from storefront.constants import (
    ADMIN_ID_PREFIX,
    DEFAULT_BCRYPT_ROUNDS,
    MAX_PASSWORD_BYTES,
)
from storefront.errors import (
    DuplicateEmail,
    InvalidCredentials,
    MissingFields,
    PasswordTooLong,
)
from storefront.models import AdminAccount, next_time_id, utc_now_iso

if TYPE_CHECKING:
    from storefront.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Compare against a stored hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _same_email(a: Any, b: str) -> bool:
    return isinstance(a, str) and a.lower() == b.lower()


class AdminDirectory:
    """Owns the admin account collection.

    - ``create_account()`` checks email uniqueness and appends inside one
      write critical section, so two racing signups cannot both pass the
      check.
    - ``verify_credentials()`` gives the same ``InvalidCredentials`` for
      an unknown email and a wrong password, and spends the same bcrypt
      work in both cases.
    """

    def __init__(
        self, gateway: PersistenceGateway, rounds: int = DEFAULT_BCRYPT_ROUNDS
    ) -> None:
        self._gateway = gateway
        self._rounds = rounds
        self._dummy_hash: str | None = None

    async def create_account(
        self, name: Any, email: Any, password: Any
    ) -> AdminAccount:
        if not name or not email or not password:
            raise MissingFields("Name, email and password are required.")
        name, email, password = str(name), str(email), str(password)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise PasswordTooLong(MAX_PASSWORD_BYTES)

        # bcrypt is slow on purpose; keep it off the loop and out of the lock.
        password_hash = await asyncio.to_thread(hash_password, password, self._rounds)

        def insert(
            documents: list[dict[str, Any]],
        ) -> tuple[list[dict[str, Any]], AdminAccount]:
            if any(_same_email(d.get("email"), email) for d in documents):
                raise DuplicateEmail()
            account = AdminAccount(
                id=next_time_id(
                    ADMIN_ID_PREFIX, (str(d.get("id", "")) for d in documents)
                ),
                name=name,
                email=email,
                password_hash=password_hash,
                created_at=utc_now_iso(),
            )
            documents.append(account.to_dict())
            return documents, account

        account = await self._gateway.mutate_admins(insert)
        logger.info("Admin account %s created.", account.id)
        return account

    async def find_by_email(self, email: str) -> AdminAccount | None:
        for doc in await self._gateway.read_admins():
            if isinstance(doc, dict) and _same_email(doc.get("email"), email):
                return AdminAccount.from_dict(doc)
        return None

    async def get_account(self, account_id: str) -> AdminAccount | None:
        """Authorization predicate for a session's admin identifier."""
        if not account_id:
            return None
        for doc in await self._gateway.read_admins():
            if isinstance(doc, dict) and doc.get("id") == account_id:
                return AdminAccount.from_dict(doc)
        return None

    async def verify_credentials(self, email: Any, password: Any) -> AdminAccount:
        if not email or not password:
            raise MissingFields("Email and password are required.")
        account = await self.find_by_email(str(email))

        if account is None:
            await asyncio.to_thread(self._check_dummy, str(password))
            raise InvalidCredentials()
        if not await asyncio.to_thread(
            verify_password, str(password), account.password_hash
        ):
            raise InvalidCredentials()
        return account

    def _check_dummy(self, password: str) -> None:
        """Spend one bcrypt comparison so unknown emails cost the same."""
        if self._dummy_hash is None:
            self._dummy_hash = hash_password("storefront-timing-pad", self._rounds)
        verify_password(password, self._dummy_hash)
