"""Per-tier daily message allowances."""

from dataclasses import dataclass

USER_TYPES = ("guest", "regular")


@dataclass(frozen=True)
class Entitlements:
    max_messages_per_day: int


DEFAULT_ENTITLEMENTS: dict[str, Entitlements] = {
    # Users without an account
    "guest": Entitlements(max_messages_per_day=20),
    # Users with an account
    "regular": Entitlements(max_messages_per_day=100),
}


def entitlements_for(
    user_type: str, table: dict[str, Entitlements] | None = None
) -> Entitlements:
    """Look up the entitlements for a user tier, defaulting to guest."""
    table = table or DEFAULT_ENTITLEMENTS
    return table.get(user_type, table["guest"])
