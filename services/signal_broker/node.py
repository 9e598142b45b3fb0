"""
Broker Node - This process's identity among signaling nodes.

The node address is "<local-ipv4>-<pid>". It is the suffix of the node's
stats and queue keys and the value written under its peers' directory keys.
"""

import os
import socket
from typing import Optional

LOOPBACK = "127.0.0.1"


def resolve_local_ip() -> str:
    """
    Best-effort primary IPv4 of this host.

    Connecting a UDP socket sends nothing; it only selects the outbound
    interface. Falls back to the hostname lookup, then loopback.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            ip = s.getsockname()[0]
            if ip and not ip.startswith("0."):
                return ip
    except OSError:
        pass

    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return LOOPBACK


def generate_node_address(ip: Optional[str] = None, pid: Optional[int] = None) -> str:
    ip = ip or resolve_local_ip()
    pid = os.getpid() if pid is None else pid
    return f"{ip}-{pid}"
