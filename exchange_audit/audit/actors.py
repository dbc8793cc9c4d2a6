"""Actor identity lookups for audit entries.

Entries store a denormalized snapshot of the actor's email and role so that
later renames or role changes do not rewrite history. A missing or broken
lookup must never block the audit write, so every lookup falls back to
``"unknown"``. Lookups run in a savepoint so that a failed query does not
abort the surrounding transaction before the audit row is written.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_audit.audit.config import UNKNOWN
from exchange_audit.audit.models import ActorSnapshot, ActorType
from exchange_audit.audit.noncritical import non_critical
from exchange_audit.models import AdminAccount, UserAccount

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = "ADMIN"
DEFAULT_USER_ROLE = "USER"


def _unknown_admin() -> ActorSnapshot:
    return ActorSnapshot(email=UNKNOWN, role=DEFAULT_ADMIN_ROLE)


def _unknown_user() -> ActorSnapshot:
    return ActorSnapshot(email=UNKNOWN, role=DEFAULT_USER_ROLE)


class ActorDirectory:
    """Resolves admin and user identities for audit snapshots.

    Args:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @non_critical(fallback=_unknown_admin, message="Admin snapshot lookup failed")
    async def get_admin_snapshot(self, admin_id: str) -> ActorSnapshot:
        """Get the admin's current work email and role.

        Args:
            admin_id: Admin account id

        Returns:
            ActorSnapshot, with email "unknown" if the admin does not exist
        """
        async with self.session.begin_nested():
            result = await self.session.execute(
                select(AdminAccount).where(AdminAccount.id == admin_id)
            )
            admin = result.scalar_one_or_none()
        if admin is None:
            logger.warning(f"Audit actor not found: admin_id={admin_id}")
            return _unknown_admin()

        return ActorSnapshot(
            email=admin.work_email or admin.email,
            role=admin.role_code or DEFAULT_ADMIN_ROLE,
        )

    @non_critical(fallback=_unknown_user, message="User snapshot lookup failed")
    async def get_user_snapshot(self, user_id: str) -> ActorSnapshot:
        """Get the user's current email and role.

        Args:
            user_id: User account id

        Returns:
            ActorSnapshot, with email "unknown" if the user does not exist
        """
        async with self.session.begin_nested():
            result = await self.session.execute(
                select(UserAccount).where(UserAccount.id == user_id)
            )
            user = result.scalar_one_or_none()
        if user is None:
            logger.warning(f"Audit actor not found: user_id={user_id}")
            return _unknown_user()

        return ActorSnapshot(email=user.email, role=user.role or DEFAULT_USER_ROLE)

    async def get_snapshot(
        self, actor_type: ActorType, actor_id: str | None
    ) -> ActorSnapshot | None:
        """Snapshot any actor; system actors have no snapshot."""
        if actor_type == ActorType.SYSTEM or actor_id is None:
            return None
        if actor_type == ActorType.ADMIN:
            return await self.get_admin_snapshot(actor_id)
        return await self.get_user_snapshot(actor_id)

    async def get_display_email(self, actor_type: str, actor_id: str) -> str:
        """Resolve the current display email for an actor, "unknown" if gone."""
        if actor_type == ActorType.ADMIN:
            snapshot = await self.get_admin_snapshot(actor_id)
        else:
            snapshot = await self.get_user_snapshot(actor_id)
        return snapshot.email
