from __future__ import annotations

from datetime import datetime
from typing import Optional

from classroom_service_libs.logging_utils import create_service_logger
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.classroom_service.models_db import RefreshToken, User
from services.classroom_service.protocols import (
    RefreshTokenRepositoryProtocol,
    UserRepositoryProtocol,
)

logger = create_service_logger("classroom_service.repository.users")


class SqlAlchemyUserRepo(UserRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def create_user(
        self, name: str, email: str, password_hash: str, role: str
    ) -> Optional[User]:
        """Insert a user; returns ``None`` when the email is already taken."""
        async with self._session_factory() as session:
            user = User(name=name, email=email.lower(), password_hash=password_hash, role=role)
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.info("Duplicate email on registration", extra={"email": email.lower()})
                return None
            return user

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self._session_factory() as session:
            res = await session.execute(select(User).where(User.email == email.lower()))
            return res.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def update_profile(
        self, user_id: int, name: str | None, avatar: str | None
    ) -> Optional[User]:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            if name is not None:
                user.name = name
            if avatar is not None:
                user.avatar = avatar
            await session.commit()
            return user

    async def update_password(self, user_id: int, password_hash: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(User).where(User.id == user_id).values(password_hash=password_hash)
            )
            await session.commit()


class SqlAlchemyRefreshTokenRepo(RefreshTokenRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def create_token(
        self,
        user_id: int,
        token: str,
        jwt_id: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> RefreshToken:
        async with self._session_factory() as session:
            row = RefreshToken(
                user_id=user_id,
                token=token,
                jwt_id=jwt_id,
                used=False,
                revoked=False,
                issued_at=issued_at,
                expires_at=expires_at,
            )
            session.add(row)
            await session.commit()
            return row

    async def get_by_token(self, token: str) -> Optional[RefreshToken]:
        async with self._session_factory() as session:
            res = await session.execute(select(RefreshToken).where(RefreshToken.token == token))
            return res.scalar_one_or_none()

    async def mark_used_if_active(self, token_id: int) -> bool:
        """Compare-and-set ``used``; exactly one concurrent caller gets True."""
        async with self._session_factory() as session:
            result = await session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.id == token_id,
                    RefreshToken.used.is_(False),
                    RefreshToken.revoked.is_(False),
                )
                .values(used=True)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount == 1

    async def revoke_all_for_user(self, user_id: int) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.user_id == user_id,
                    RefreshToken.used.is_(False),
                    RefreshToken.revoked.is_(False),
                )
                .values(revoked=True)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount or 0
