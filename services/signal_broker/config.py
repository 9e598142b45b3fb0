# services/signal_broker/config.py
"""Configuration for the Signal Broker."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from shared.config import _env, env_float, env_int, env_list

from .models import (
    BREAK_DURATION,
    CLIENT_ALIVE_EXPIRE_DURATION,
    DEFAULT_KEY_PREFIX,
    PEER_CACHE_MAX,
    PEER_EXPIRE_DURATION,
)

DEFAULT_REDIS_PORT = 6379


def parse_cluster_nodes(items: List[str]) -> List[Tuple[str, int]]:
    """Parse ["host:port", "host"] into [(host, port), ...]."""
    nodes: List[Tuple[str, int]] = []
    for item in items:
        host, sep, port = item.rpartition(":")
        if not sep:
            host, port = item, str(DEFAULT_REDIS_PORT)
        if not host:
            raise ValueError(f"Invalid cluster node address: {item!r}")
        try:
            nodes.append((host, int(port)))
        except ValueError:
            raise ValueError(f"Invalid cluster node port: {item!r}") from None
    return nodes


@dataclass
class StoreTopology:
    """Where the shared store lives: one instance, or a cluster seed list."""

    host: str = "127.0.0.1"
    port: int = DEFAULT_REDIS_PORT
    db: int = 0
    username: Optional[str] = None
    password: Optional[str] = None
    cluster_nodes: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def is_cluster(self) -> bool:
        return bool(self.cluster_nodes)

    def describe(self) -> str:
        if self.is_cluster:
            seeds = ",".join(f"{h}:{p}" for h, p in self.cluster_nodes)
            return f"cluster[{seeds}]"
        return f"{self.host}:{self.port}/{self.db}"


@dataclass
class BrokerConfig:
    """Configuration for one signaling node's coordination layer."""

    service_id: str = "signal_broker"
    log_level: str = "INFO"

    topology: StoreTopology = field(default_factory=StoreTopology)
    key_prefix: str = DEFAULT_KEY_PREFIX

    # None -> derived from local IP + pid
    node_address: Optional[str] = None

    # TTLs (seconds)
    peer_ttl: int = PEER_EXPIRE_DURATION
    client_alive_ttl: int = CLIENT_ALIVE_EXPIRE_DURATION

    # Breaker
    break_duration: float = BREAK_DURATION

    # Peer cache
    peer_cache_max: int = PEER_CACHE_MAX
    peer_cache_ttl: Optional[float] = None

    # Background loops
    stats_interval_sec: float = 10.0
    peer_refresh_interval_sec: float = 300.0
    consume_timeout_sec: float = 5.0

    @classmethod
    def from_env(cls) -> "BrokerConfig":
        topology = StoreTopology(
            host=_env("SIGNAL_REDIS_HOST", "127.0.0.1"),
            port=env_int("SIGNAL_REDIS_PORT", DEFAULT_REDIS_PORT),
            db=env_int("SIGNAL_REDIS_DB", 0),
            username=_env("SIGNAL_REDIS_USERNAME"),
            password=_env("SIGNAL_REDIS_PASSWORD"),
            cluster_nodes=parse_cluster_nodes(env_list("SIGNAL_REDIS_CLUSTER_NODES")),
        )

        cfg = cls(
            service_id=_env("SERVICE_ID", "signal_broker"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            topology=topology,
            key_prefix=_env("SIGNAL_KEY_PREFIX", DEFAULT_KEY_PREFIX),
            node_address=_env("SIGNAL_NODE_ADDRESS"),
            peer_ttl=env_int("SIGNAL_PEER_EXPIRE_SEC", PEER_EXPIRE_DURATION),
            client_alive_ttl=env_int("SIGNAL_CLIENT_ALIVE_EXPIRE_SEC", CLIENT_ALIVE_EXPIRE_DURATION),
            break_duration=env_float("SIGNAL_BREAK_DURATION_SEC", BREAK_DURATION),
            peer_cache_max=env_int("SIGNAL_PEER_CACHE_MAX", PEER_CACHE_MAX),
            peer_cache_ttl=env_float("SIGNAL_PEER_CACHE_TTL_SEC", None),
            stats_interval_sec=env_float("SIGNAL_STATS_INTERVAL_SEC", 10.0),
            peer_refresh_interval_sec=env_float("SIGNAL_PEER_REFRESH_INTERVAL_SEC", 300.0),
            consume_timeout_sec=env_float("SIGNAL_CONSUME_TIMEOUT_SEC", 5.0),
        )
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Raise ValueError on settings that cannot keep records alive."""
        positive = {
            "peer_ttl": self.peer_ttl,
            "client_alive_ttl": self.client_alive_ttl,
            "break_duration": self.break_duration,
            "peer_cache_max": self.peer_cache_max,
            "stats_interval_sec": self.stats_interval_sec,
            "peer_refresh_interval_sec": self.peer_refresh_interval_sec,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        if self.consume_timeout_sec < 0:
            raise ValueError("consume_timeout_sec must not be negative")
        if self.peer_cache_ttl is not None and self.peer_cache_ttl <= 0:
            raise ValueError("peer_cache_ttl must be positive when set")

        # A record must be republished before it expires
        if self.stats_interval_sec >= self.client_alive_ttl:
            raise ValueError(
                f"stats_interval_sec ({self.stats_interval_sec}) must be shorter "
                f"than client_alive_ttl ({self.client_alive_ttl})"
            )
        if self.peer_refresh_interval_sec >= self.peer_ttl:
            raise ValueError(
                f"peer_refresh_interval_sec ({self.peer_refresh_interval_sec}) must be "
                f"shorter than peer_ttl ({self.peer_ttl})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Loggable view; credentials are masked."""
        return {
            "service_id": self.service_id,
            "LOG_LEVEL": self.log_level,
            "store": self.topology.describe(),
            "store_auth": bool(self.topology.password),
            "key_prefix": self.key_prefix,
            "node_address": self.node_address,
            "peer_ttl": self.peer_ttl,
            "client_alive_ttl": self.client_alive_ttl,
            "break_duration": self.break_duration,
            "peer_cache_max": self.peer_cache_max,
            "peer_cache_ttl": self.peer_cache_ttl,
            "stats_interval_sec": self.stats_interval_sec,
            "peer_refresh_interval_sec": self.peer_refresh_interval_sec,
            "consume_timeout_sec": self.consume_timeout_sec,
        }
