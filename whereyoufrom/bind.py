"""
Bind listening sockets for the configured addresses.

A failure on one address is reported and skipped; the caller decides whether
an empty result is fatal.
"""
import socket

from .config import Protocol
from .log import get_logger

BACKLOG = 512


def bind_socket(protocol, address, log=None):
    """
    Create a non-blocking socket bound to address.

    Returns None when any step fails, after logging why.
    """
    log = log or get_logger()
    name = protocol.name

    log.debug("Binding %s socket at %s", name, address)
    sock = None
    try:
        sock = socket.socket(address.family, protocol.socket_type)
        if address.family == socket.AF_INET6:
            # Lets [::] and 0.0.0.0 share a port instead of colliding
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
        if protocol is Protocol.TCP:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(address.sockaddr)
        if protocol is Protocol.TCP:
            sock.listen(BACKLOG)
        sock.setblocking(False)
    except OSError as e:
        log.error("Failed to bind %s socket at %s: %s", name, address, e)
        if sock is not None:
            sock.close()
        return None

    log.debug("Successfully bound %s socket at %s", name, address)
    return sock


def bind_all(protocol, addresses, log=None):
    sockets = []
    for address in addresses:
        sock = bind_socket(protocol, address, log)
        if sock is not None:
            sockets.append(sock)
    return sockets


def bind_tcp_listeners(addresses, log=None):
    return bind_all(Protocol.TCP, addresses, log)


def bind_udp_sockets(addresses, log=None):
    return bind_all(Protocol.UDP, addresses, log)
