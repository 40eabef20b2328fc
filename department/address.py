import socket
import ipaddress
import logging

import psutil

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"


def is_usable_address(addr):
    try:
        ip = ipaddress.IPv4Address(addr)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def interface_addresses():
    """IPv4 addresses of the interfaces that are up, sorted."""
    stats = psutil.net_if_stats()
    addresses = []
    for name, addrs in psutil.net_if_addrs().items():
        iface = stats.get(name)
        if iface is None or not iface.isup:
            continue
        addresses.extend(a.address for a in addrs if a.family == socket.AF_INET)
    return sorted(addresses)


def get_local_ip():
    """
    The IPv4 address other hosts should use to reach this machine:
    the first non-loopback, non-link-local address of an interface that
    is up, else the address the hostname resolves to, else loopback.
    """
    try:
        candidates = interface_addresses()
    except OSError as e:
        logger.error(f"Error getting network interfaces: {e}")
        candidates = []
    for addr in candidates:
        if is_usable_address(addr):
            return addr

    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return LOOPBACK
