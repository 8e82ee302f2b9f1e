"""Access/refresh token issuance, validation and rotation."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import structlog
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError

from ..config import TokenSettings
from ..exceptions import IssuanceError, NotFoundError, RepositoryError, Unauthorized
from ..users.users_models import Principal, UserRecord
from ..users.users_repository import UserRepository


logger = structlog.get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _utcnow() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(tz=timezone.utc)


@dataclass(slots=True, frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(slots=True)
class CredentialIssuer:
    """Mint, validate, rotate and revoke per-user token pairs.

    The access token is never stored. The refresh token is persisted on the
    user row and is single use: :meth:`rotate` only succeeds while the stored
    value equals the presented one.
    """

    users: UserRepository
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=10)
    algorithm: str = "HS256"
    clock: Callable[[], datetime] = field(default=_utcnow)

    @classmethod
    def from_settings(cls, users: UserRepository, settings: TokenSettings) -> "CredentialIssuer":
        return cls(
            users=users,
            access_secret=settings.access_secret,
            refresh_secret=settings.refresh_secret,
            access_ttl=settings.access_ttl,
            refresh_ttl=settings.refresh_ttl,
        )

    def issue(self, principal_id: str) -> TokenPair:
        """Mint a fresh pair and overwrite the stored refresh token."""
        try:
            user = self.users.get_user(principal_id)
            pair = self._mint_pair(user)
            self.users.set_refresh_token(user.id, pair.refresh_token)
        except (NotFoundError, RepositoryError) as exc:
            logger.error("auth.token.issue_failed", user_id=principal_id, error=str(exc))
            raise IssuanceError("something went wrong while generating access and refresh token") from exc
        logger.info("auth.token.issued", user_id=principal_id)
        return pair

    def authenticate(self, token: str | None, *, optional: bool = False) -> Principal | None:
        """Resolve the principal behind an access token.

        With ``optional=True`` every failure yields ``None`` instead of
        :class:`Unauthorized`.
        """
        try:
            return self._authenticate(token)
        except Unauthorized as exc:
            if optional:
                logger.debug("auth.optional.anonymous", reason=str(exc))
                return None
            raise

    def rotate(self, refresh_token: str | None) -> TokenPair:
        """Exchange a refresh token for a new pair, invalidating the old one."""
        if not refresh_token:
            raise Unauthorized("unauthorized request")
        claims = self._decode(refresh_token, self.refresh_secret, REFRESH_TOKEN_TYPE)
        user_id = claims["sub"]
        try:
            user = self.users.get_user(user_id)
        except NotFoundError as exc:
            raise Unauthorized("invalid refresh token") from exc
        except RepositoryError as exc:
            raise IssuanceError("could not load user for token rotation") from exc

        if user.refresh_token != refresh_token:
            logger.warning("auth.token.reuse_detected", user_id=user_id)
            raise Unauthorized("refresh token is expired or used")

        pair = self._mint_pair(user)
        try:
            swapped = self.users.swap_refresh_token(
                user_id, expected=refresh_token, new=pair.refresh_token
            )
        except RepositoryError as exc:
            raise IssuanceError("could not persist rotated refresh token") from exc
        if not swapped:
            logger.warning("auth.token.rotation_lost", user_id=user_id)
            raise Unauthorized("refresh token is expired or used")
        logger.info("auth.token.rotated", user_id=user_id)
        return pair

    def revoke(self, principal_id: str) -> None:
        """Clear the stored refresh token; live access tokens run to expiry."""
        self.users.set_refresh_token(principal_id, None)
        logger.info("auth.token.revoked", user_id=principal_id)

    def _authenticate(self, token: str | None) -> Principal:
        if not token:
            raise Unauthorized("unauthorized request")
        claims = self._decode(token, self.access_secret, ACCESS_TOKEN_TYPE)
        try:
            user = self.users.get_user(claims["sub"])
        except NotFoundError as exc:
            raise Unauthorized("invalid access token") from exc
        return user.to_principal()

    def _decode(self, token: str, secret: str, token_type: str) -> dict[str, Any]:
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub", "type"]},
            )
        except ExpiredSignatureError as exc:
            raise Unauthorized("token expired") from exc
        except PyJWTInvalidTokenError as exc:
            raise Unauthorized("invalid token") from exc
        if claims.get("type") != token_type:
            raise Unauthorized("invalid token")
        return claims

    def _mint_pair(self, user: UserRecord) -> TokenPair:
        issued_at = self.clock()
        access_claims = {
            "sub": user.id,
            "username": user.username,
            "email": user.email,
            "full_name": user.full_name,
            "type": ACCESS_TOKEN_TYPE,
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.access_ttl).timestamp()),
        }
        refresh_claims = {
            "sub": user.id,
            "type": REFRESH_TOKEN_TYPE,
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.refresh_ttl).timestamp()),
        }
        return TokenPair(
            access_token=jwt.encode(access_claims, self.access_secret, algorithm=self.algorithm),
            refresh_token=jwt.encode(refresh_claims, self.refresh_secret, algorithm=self.algorithm),
        )


__all__ = ["CredentialIssuer", "TokenPair", "ACCESS_TOKEN_TYPE", "REFRESH_TOKEN_TYPE"]
