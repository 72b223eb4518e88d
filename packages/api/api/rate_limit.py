"""Per-user daily message quota, counted from stored messages."""

from datetime import timedelta

from chatbot.entitlements import Entitlements, entitlements_for
from chatbot.errors import ChatError
from chatbot.log import get_logger
from chatbot.models import User, utcnow
from database.ChatRepository import ChatRepository

logger = get_logger(__name__)

WINDOW_HOURS = 24


def get_limit(user: User, table: dict[str, Entitlements] | None = None) -> int:
    return entitlements_for(user.type, table).max_messages_per_day


def get_remaining(
    repository: ChatRepository,
    user: User,
    table: dict[str, Entitlements] | None = None,
) -> int:
    """Return how many messages remain in the trailing window."""
    count = repository.get_message_count_by_user_id(user.id, WINDOW_HOURS)
    return max(0, get_limit(user, table) - count)


def get_reset_time(repository: ChatRepository, user: User) -> str:
    """Return an ISO-8601 timestamp for when the oldest counted message
    leaves the window."""
    oldest = repository.get_oldest_message_time_by_user_id(user.id, WINDOW_HOURS)
    if oldest is None:
        return utcnow().isoformat()
    return (oldest + timedelta(hours=WINDOW_HOURS)).isoformat()


def enforce_daily_quota(
    repository: ChatRepository,
    user: User,
    table: dict[str, Entitlements] | None = None,
) -> int:
    """Reject the request if the user is over their daily allowance.

    Must run before any write for the request.

    Returns:
        The number of messages counted in the window.

    Raises:
        ChatError ``rate_limit:chat`` when the count exceeds the tier quota.
    """
    count = repository.get_message_count_by_user_id(user.id, WINDOW_HOURS)
    limit = get_limit(user, table)
    if count > limit:
        logger.info("rate_limited", user_id=user.id, count=count, limit=limit)
        raise ChatError("rate_limit:chat")
    return count
