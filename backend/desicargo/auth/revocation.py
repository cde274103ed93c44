"""JWT token revocation using Redis blacklist.

Tokens are revoked on sign-out, after an action token (email verification,
password reset) has been used once, and wholesale when an administrator
deactivates a user. Entries live until the token's natural expiry.
"""

import logging
import time

import redis.asyncio as redis

from desicargo.utils.cache import get_redis

logger = logging.getLogger(__name__)


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Add token to revocation list.

        Args:
            token: JWT token to revoke
            expires_at: Unix timestamp when token naturally expires

        Returns:
            True if successfully revoked
        """
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            return True

        try:
            redis_client = await get_redis()
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
            return True
        except redis.RedisError as e:
            logger.error(f"Failed to revoke token: {e}")
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        try:
            redis_client = await get_redis()
            return await redis_client.exists(f"revoked:{token}") > 0
        except redis.RedisError as e:
            logger.error(f"Failed to check token revocation: {e}")
            # Fail closed for security
            return True

    @staticmethod
    async def revoke_all_user_tokens(user_id: str, duration: int = 86400) -> bool:
        """Revoke every token issued to a user up to now.

        Tokens issued afterwards stay valid. The marker outlives any token
        it has to cover for `duration` seconds.
        """
        try:
            redis_client = await get_redis()
            await redis_client.setex(
                f"revoked:user:{user_id}", duration, str(time.time())
            )
            return True
        except redis.RedisError as e:
            logger.error(f"Failed to revoke user tokens: {e}")
            return False

    @staticmethod
    async def is_user_revoked(user_id: str, issued_at: float | None = None) -> bool:
        """True when the user's tokens were revoked after `issued_at`."""
        try:
            redis_client = await get_redis()
            revoked_at = await redis_client.get(f"revoked:user:{user_id}")
            if revoked_at is None:
                return False
            if issued_at is None:
                return True
            return float(issued_at) < float(revoked_at)
        except redis.RedisError as e:
            logger.error(f"Failed to check user revocation: {e}")
            # Fail closed for security
            return True
