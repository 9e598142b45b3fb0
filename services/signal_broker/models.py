"""
Signal Broker Models - Constants, states and store key layout.
"""

from enum import Enum

# Durations in seconds
PEER_EXPIRE_DURATION = 10 * 60
CLIENT_ALIVE_EXPIRE_DURATION = 20
BREAK_DURATION = 2.0

PEER_CACHE_MAX = 100_000

# Returned by count / length lookups when the value cannot be known
UNKNOWN = -1

DEFAULT_KEY_PREFIX = "signal"


class BreakerState(str, Enum):
    """Availability of the shared store as seen by this process."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class StoreKeys:
    """
    Key layout in the shared store.

    - <prefix>:peerId:<peerId>      -> owning node address (TTL)
    - <prefix>:stats:count:<addr>   -> connected client count (TTL)
    - <prefix>:mq:<addr>            -> message list
    """

    def __init__(self, prefix: str = DEFAULT_KEY_PREFIX):
        self.prefix = prefix

    def peer(self, peer_id: str) -> str:
        return f"{self.prefix}:peerId:{peer_id}"

    def stats(self, addr: str) -> str:
        return f"{self.prefix}:stats:count:{addr}"

    def queue(self, addr: str) -> str:
        return f"{self.prefix}:mq:{addr}"
