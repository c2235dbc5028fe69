"""
Startup configuration shared by the argument parser and the server.
"""
import socket
from dataclasses import dataclass
from enum import Enum

DEFAULT_PORT = 6969


class Protocol(Enum):
    """Transport protocols a listener can be bound for."""
    TCP = "tcp"
    UDP = "udp"

    @property
    def socket_type(self):
        if self is Protocol.TCP:
            return socket.SOCK_STREAM
        return socket.SOCK_DGRAM


@dataclass(frozen=True)
class SocketAddress:
    family: int
    host: str
    port: int

    @classmethod
    def from_sockaddr(cls, family, sockaddr):
        return cls(family, sockaddr[0], sockaddr[1])

    @classmethod
    def wildcard_v6(cls, port=DEFAULT_PORT):
        return cls(socket.AF_INET6, "::", port)

    @classmethod
    def wildcard_v4(cls, port=DEFAULT_PORT):
        return cls(socket.AF_INET, "0.0.0.0", port)

    @property
    def sockaddr(self):
        if self.family == socket.AF_INET6:
            return (self.host, self.port, 0, 0)
        return (self.host, self.port)

    def __str__(self):
        if self.family == socket.AF_INET6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class StartupConfig:
    """
    Validated startup options.

    An empty address tuple means listening on that protocol is disabled.
    """
    verbose: bool = False
    silent: bool = False
    tcp_addresses: tuple = ()
    udp_addresses: tuple = ()

    def addresses(self, protocol):
        if protocol is Protocol.TCP:
            return self.tcp_addresses
        return self.udp_addresses


def default_addresses(port=DEFAULT_PORT):
    """Wildcard IPv6 and IPv4 addresses, in that order."""
    return (SocketAddress.wildcard_v6(port), SocketAddress.wildcard_v4(port))
