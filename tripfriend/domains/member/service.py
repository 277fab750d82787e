# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member service for account lifecycle management.

This module provides the MemberService that handles:
- Sign-up with uniqueness checks, including first social logins
- Profile reads and updates
- Soft delete, restore within the restore window, and the purge of
  accounts whose window has closed
- Marking an email address as verified

Soft delete always sets ``deleted`` and ``deleted_at`` together, and
restore always clears both.

Example:
    >>> service = MemberService(db, auth_service, credential_store, PasswordHasher())
    >>> member = await service.join(request)
    >>> await service.soft_delete(member, access_token)
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tripfriend.domains.auth.credential_store import CredentialStore
from tripfriend.domains.auth.exceptions import RestoreWindowExpiredError
from tripfriend.domains.auth.password import PasswordHasher
from tripfriend.domains.auth.service import AuthService
from tripfriend.domains.member.schemas import MemberJoinRequest, MemberUpdateRequest
from tripfriend.infrastructure.database.models import (
    AgeRange,
    Authority,
    Gender,
    Member,
    MemberTravelStyle,
)
from tripfriend.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class MemberServiceError(Exception):
    """Base exception for member service errors."""

    code = "400-0"
    default_message = "Member operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class MemberAlreadyExistsError(MemberServiceError):
    """Raised when a username, email or nickname is already taken."""

    code = "409-1"
    default_message = "Member already exists"


class NotDeletedMemberError(MemberServiceError):
    """Raised when restoring an account that is not deleted."""

    code = "400-1"
    default_message = "Member is not deleted"


class EmailMismatchError(MemberServiceError):
    """Raised when verifying an address that is not the member's."""

    code = "400-3"
    default_message = "Email does not belong to this member"


async def purge_expired_members(
    db: AsyncSession,
    restore_window: timedelta,
    now: datetime | None = None,
) -> int:
    """Hard-delete members whose restore window has closed.

    Only rows with ``deleted`` set and ``deleted_at`` older than the
    restore window are removed, so a concurrent restore (which needs the
    window to still be open) never races with this delete. Needs nothing
    but the database, so the scheduled job can run it on its own session.

    Args:
        db: Async database session.
        restore_window: Restore window for soft-deleted accounts.
        now: Reference time, defaults to the current time.

    Returns:
        Number of members removed.
    """
    cutoff = (now or utc_now()) - restore_window
    stmt = delete(Member).where(
        Member.deleted.is_(True),
        Member.deleted_at.is_not(None),
        Member.deleted_at < cutoff,
    )
    result = await db.execute(stmt)
    await db.commit()

    purged = result.rowcount or 0
    logger.info("Purged %d expired members (cutoff=%s)", purged, cutoff.isoformat())
    return purged


class MemberService:
    """Service for member accounts.

    Attributes:
        _db: Async database session.
        _auth_service: Session management, used to log out on delete.
        _store: Credential store, used to drop sessions on restore.
        _password_hasher: Password hasher.
        _restore_window: How long a soft-deleted account stays restorable.
    """

    def __init__(
        self,
        db: AsyncSession,
        auth_service: AuthService,
        credential_store: CredentialStore,
        password_hasher: PasswordHasher,
        restore_window: timedelta = timedelta(days=30),
    ) -> None:
        """Initialize the member service.

        Args:
            db: Async database session.
            auth_service: Session management service.
            credential_store: Credential store.
            password_hasher: Password hasher.
            restore_window: Restore window for soft-deleted accounts.
        """
        self._db = db
        self._auth_service = auth_service
        self._store = credential_store
        self._password_hasher = password_hasher
        self._restore_window = restore_window

    async def join(self, request: MemberJoinRequest) -> Member:
        """Create a new member.

        Args:
            request: Sign-up request.

        Returns:
            The created member.

        Raises:
            MemberAlreadyExistsError: If the username, email or nickname
                is already taken.
        """
        stmt = select(Member).where(
            or_(
                Member.username == request.username,
                Member.email == request.email,
                Member.nickname == request.nickname,
            )
        )
        result = await self._db.execute(stmt)
        existing = result.scalars().first()
        if existing is not None:
            raise MemberAlreadyExistsError(self._conflict_message(existing, request))

        member = Member(
            username=request.username,
            email=request.email,
            password=self._password_hasher.hash(request.password),
            nickname=request.nickname,
            gender=request.gender,
            age_range=request.age_range,
            travel_style=request.travel_style,
            about_me=request.about_me,
            profile_image=request.profile_image,
            authority=Authority.USER.value,
            verified=False,
            rating=0.0,
            deleted=False,
        )

        self._db.add(member)
        await self._commit_unique("Username, email or nickname is already taken")
        await self._db.refresh(member)

        logger.info("Member joined: %s", member.username)

        return member

    async def find_or_create_social_member(
        self,
        provider: str,
        provider_id: str,
        email: str | None,
    ) -> Member:
        """Get the member linked to a social account, creating it on first login.

        A new member is named ``{provider}_{provider_id}``, also used as
        the nickname, and is verified from the start. It gets a random
        password hash, so password login never matches. Without a shared
        email the address ``{username}@noemail.com`` is used.

        Soft-deleted members are returned as they are; the session
        layer decides whether they may enter recovery mode.

        Args:
            provider: Provider name.
            provider_id: Account id at the provider.
            email: Email shared by the provider, if any.

        Returns:
            The linked member.

        Raises:
            MemberAlreadyExistsError: If the email belongs to another member.
        """
        stmt = select(Member).where(
            Member.provider == provider,
            Member.provider_id == provider_id,
        )
        result = await self._db.execute(stmt)
        member = result.scalar_one_or_none()
        if member is not None:
            return member

        username = f"{provider}_{provider_id}"
        address = email or f"{username}@noemail.com"
        if await self.get_by_email(address) is not None:
            logger.warning("Social sign-up with a registered email: provider=%s", provider)
            raise MemberAlreadyExistsError(f"Email {address} is already registered")

        member = Member(
            username=username,
            email=address,
            password=self._password_hasher.hash_random(),
            nickname=username,
            gender=Gender.UNKNOWN,
            age_range=AgeRange.UNKNOWN,
            travel_style=MemberTravelStyle.UNKNOWN,
            authority=Authority.USER.value,
            verified=True,
            rating=0.0,
            provider=provider,
            provider_id=provider_id,
            deleted=False,
        )

        self._db.add(member)
        await self._commit_unique(f"Account {username} already exists")
        await self._db.refresh(member)

        logger.info("Member joined through %s: %s", provider, member.username)

        return member

    async def get_by_username(self, username: str) -> Member | None:
        """Get a member by username, deleted or not."""
        stmt = select(Member).where(Member.username == username)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Member | None:
        """Get a member by email address, case-insensitively."""
        stmt = select(Member).where(func.lower(Member.email) == email.lower())
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_members(self, limit: int = 50, offset: int = 0) -> list[Member]:
        """List all members, newest first.

        Args:
            limit: Maximum results.
            offset: Pagination offset.

        Returns:
            Members on the requested page.
        """
        stmt = select(Member).order_by(Member.created_at.desc()).limit(limit).offset(offset)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def update_profile(self, member: Member, request: MemberUpdateRequest) -> Member:
        """Apply a profile update.

        Args:
            member: The member to update.
            request: Update request with fields to change.

        Returns:
            The updated member.

        Raises:
            MemberAlreadyExistsError: If the new nickname is taken.
        """
        if request.nickname is not None and request.nickname != member.nickname:
            stmt = select(Member.id).where(Member.nickname == request.nickname)
            result = await self._db.execute(stmt)
            if result.scalar_one_or_none() is not None:
                raise MemberAlreadyExistsError(f"Nickname {request.nickname} is already taken")
            member.nickname = request.nickname

        if request.gender is not None:
            member.gender = request.gender
        if request.age_range is not None:
            member.age_range = request.age_range
        if request.travel_style is not None:
            member.travel_style = request.travel_style
        if request.about_me is not None:
            member.about_me = request.about_me
        if request.profile_image is not None:
            member.profile_image = request.profile_image

        await self._commit_unique(f"Nickname {member.nickname} is already taken")
        await self._db.refresh(member)

        logger.info("Member updated: %s", member.username)

        return member

    async def soft_delete(self, member: Member, access_token: str | None) -> None:
        """Soft-delete a member and end their session.

        Args:
            member: The member to delete.
            access_token: The access token used for the request.
        """
        member.mark_deleted()
        await self._auth_service.logout(access_token)
        await self._store.delete_session(member.username)
        await self._db.commit()

        logger.info("Member soft-deleted: %s", member.username)

    async def restore(self, member: Member, now: datetime | None = None) -> Member:
        """Restore a soft-deleted member.

        The recovery-mode session is dropped, so the member logs in again
        to receive normal tokens.

        Args:
            member: The member to restore.
            now: Reference time, defaults to the current time.

        Returns:
            The restored member.

        Raises:
            NotDeletedMemberError: If the member is not deleted.
            RestoreWindowExpiredError: If the restore window has closed.
        """
        if not member.deleted:
            raise NotDeletedMemberError()

        if not member.can_be_restored(self._restore_window, now):
            logger.warning("Restore window expired: %s", member.username)
            raise RestoreWindowExpiredError()

        member.clear_deleted()
        await self._db.commit()
        await self._store.delete_session(member.username)

        logger.info("Member restored: %s", member.username)

        return member

    async def mark_verified(self, member: Member, email: str) -> Member:
        """Mark a member's email as verified.

        Args:
            member: The member.
            email: The address that was verified.

        Returns:
            The updated member.

        Raises:
            EmailMismatchError: If the address is not the member's.
        """
        if email.lower() != member.email.lower():
            raise EmailMismatchError()

        member.verified = True
        await self._db.commit()

        logger.info("Member email verified: %s", member.username)

        return member

    async def purge_expired_members(self, now: datetime | None = None) -> int:
        """Hard-delete members whose restore window has closed.

        See :func:`purge_expired_members`.
        """
        return await purge_expired_members(self._db, self._restore_window, now)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _commit_unique(self, conflict_message: str) -> None:
        """Commit, reporting a unique-constraint violation as a conflict.

        The pre-insert lookups cannot see a row committed concurrently by
        another request; the database constraint is the final check.
        """
        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            logger.warning("Unique constraint violated: %s", conflict_message)
            raise MemberAlreadyExistsError(conflict_message) from e

    @staticmethod
    def _conflict_message(existing: Member, request: MemberJoinRequest) -> str:
        if existing.username == request.username:
            return f"Username {request.username} is already taken"
        if existing.email == request.email:
            return f"Email {request.email} is already registered"
        return f"Nickname {request.nickname} is already taken"
