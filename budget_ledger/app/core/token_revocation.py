"""
Token Revocation using Redis.

When a council member is deleted every token they hold must stop working
on the next request rather than at expiry.
"""

import logging
from budget_ledger.app.core.config import settings

logger = logging.getLogger("budget_ledger.auth")

USER_TOKENS_PREFIX = "user:tokens:"


def _user_revocation_key(user_id: int) -> str:
    return f"{USER_TOKENS_PREFIX}{user_id}:revoked"


async def revoke_all_user_tokens(redis, user_id: int) -> bool:
    """
    Revoke all active tokens for a user.

    The flag lives as long as the longest-lived token could.

    Returns:
        True if the flag was written
    """
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis.set(_user_revocation_key(user_id), "1", ex=ttl_seconds)
        return True
    except Exception:
        logger.warning("Could not revoke tokens", exc_info=True, extra={"user_id": user_id})
        return False


async def are_user_tokens_revoked(redis, user_id: int) -> bool:
    """
    Check if all tokens for a user have been revoked.

    Fails open when Redis is unreachable: the per-request database lookup
    still rejects deleted or inactive users.
    """
    try:
        return await redis.exists(_user_revocation_key(user_id)) > 0
    except Exception:
        logger.warning("Could not check token revocation", exc_info=True, extra={"user_id": user_id})
        return False


async def clear_user_token_revocation(redis, user_id: int) -> bool:
    """Clear the revocation flag for a user."""
    try:
        await redis.delete(_user_revocation_key(user_id))
        return True
    except Exception:
        logger.warning("Could not clear token revocation", exc_info=True, extra={"user_id": user_id})
        return False
