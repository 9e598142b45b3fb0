"""
Signal Broker - Presence and message routing across signaling nodes.

Nodes share one Redis (single instance or cluster) and use it for:
- Peer directory: which node owns each peer's connection
- Node registry: each node's client count under a short TTL
- Message queues: one list per node, drained by its owner
- An availability breaker that backs off while Redis is unreachable
"""

from .breaker import AvailabilityBreaker
from .cache import PeerCache
from .config import BrokerConfig, StoreTopology
from .directory import PeerDirectory
from .models import BreakerState, StoreKeys, UNKNOWN
from .mq import MessageQueue
from .registry import NodeRegistry
from .service import SignalBroker

__all__ = [
    "AvailabilityBreaker",
    "BreakerState",
    "BrokerConfig",
    "MessageQueue",
    "NodeRegistry",
    "PeerCache",
    "PeerDirectory",
    "SignalBroker",
    "StoreKeys",
    "StoreTopology",
    "UNKNOWN",
]
