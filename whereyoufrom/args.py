"""
Command line parsing and socket address resolution.

Usage:
    whereyoufrom [-v] [-s] [-t ADDRESS]... [-u ADDRESS]...

Addresses may be IPv4/IPv6 literals or host names, with or without a port.
A protocol that is never mentioned listens on [::] and 0.0.0.0; "-t -" or
"-u -" turns the protocol off.
"""
import argparse
import platform
import socket

from . import __version__
from .config import DEFAULT_PORT, Protocol, SocketAddress, StartupConfig, default_addresses

PROG = "whereyoufrom"
DISABLED = "-"
TAGLINE = "GPS? Don't need that anymore ⌐■_■"

EPILOG = f"""\
Socket addresses may be specified as an IPv4 or IPv6 address, or a domainname,
and may include a port number. If no port is specified, then the default of
{DEFAULT_PORT} will be used. If no address is specified for a transport protocol,
then [::] and/or 0.0.0.0 will be used. To disable listening on a protocol, use
"-t -" or "-u -".

Examples:
Listens on all addresses for UDP with port {DEFAULT_PORT}, but only listens on
192.168.1.105:1234 on TCP:
    {PROG} -t 192.168.1.105:1234

Listens only on IPv4 TCP requests coming from this same machine, default port
{DEFAULT_PORT}, no UDP:
    {PROG} -t 127.0.0.1 -u -
"""


class ArgumentsError(Exception):
    pass


class InvalidSocketAddress(ArgumentsError):
    def __init__(self, option, value):
        super().__init__(f"Invalid socket address after {option}: {value}")
        self.option = option
        self.value = value


class NoSocketsSpecified(ArgumentsError):
    def __init__(self):
        super().__init__("No sockets were specified for TCP nor UDP!")


class AddressAction(argparse.Action):
    """Collect (option_string, value) pairs so errors can name the flag used."""

    def __call__(self, parser, namespace, values, option_string=None):
        entries = getattr(namespace, self.dest) or []
        entries.append((option_string, values))
        setattr(namespace, self.dest, entries)


def version_string():
    return f"{PROG} {__version__} ({platform.system().lower()} {platform.machine()})"


def build_parser():
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Reply to every TCP connection and UDP datagram with the address it came from.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version",
                        version=f"{version_string()}\n{TAGLINE}",
                        help="display the version number and exit")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="display additional information while running")
    parser.add_argument("-s", "--silent", action="store_true",
                        help="only report failures")
    parser.add_argument("-t", "--listen-tcp", dest="tcp", action=AddressAction, metavar="ADDRESS",
                        help="a TCP socket address to listen for incoming clients on")
    parser.add_argument("-u", "--listen-udp", dest="udp", action=AddressAction, metavar="ADDRESS",
                        help="a UDP socket address to listen for incoming clients on")
    return parser


def parse_port(text):
    port = int(text)
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def split_host_port(value, default_port=DEFAULT_PORT):
    """
    Split "host", "host:port", "[v6]" or "[v6]:port".

    A bare IPv6 literal (more than one colon, no brackets) takes the default
    port. Raises ValueError on malformed input.
    """
    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep:
            raise ValueError(f"unterminated IPv6 literal: {value}")
        if not rest:
            port = default_port
        elif rest.startswith(":"):
            port = parse_port(rest[1:])
        else:
            raise ValueError(f"unexpected text after IPv6 literal: {value}")
    elif value.count(":") == 1:
        host, port = value.split(":")
        port = parse_port(port)
    else:
        host, port = value, default_port

    if not host:
        raise ValueError(f"missing host: {value}")
    return host, port


def resolve(value, protocol, default_port=DEFAULT_PORT):
    """Resolve one command line address into SocketAddress entries."""
    host, port = split_host_port(value, default_port)
    infos = socket.getaddrinfo(host, port, type=protocol.socket_type)
    return [SocketAddress.from_sockaddr(family, sockaddr)
            for family, _, _, _, sockaddr in infos
            if family in (socket.AF_INET, socket.AF_INET6)]


def resolve_addresses(entries, protocol, default_port=DEFAULT_PORT):
    """
    Turn the collected (option, value) pairs of one protocol into addresses.

    None means the protocol was never mentioned and gets the wildcard pair.
    Duplicates are dropped, first occurrence wins.
    """
    if entries is None:
        return default_addresses(default_port)

    addresses = []
    for option, value in entries:
        value = value.strip()
        if value == DISABLED:
            continue
        try:
            resolved = resolve(value, protocol, default_port)
        except (OSError, ValueError, UnicodeError):
            raise InvalidSocketAddress(option, value) from None
        if not resolved:
            raise InvalidSocketAddress(option, value)
        for address in resolved:
            if address not in addresses:
                addresses.append(address)
    return tuple(addresses)


def parse_arguments(argv=None):
    """Parse argv (without the program name) into a StartupConfig."""
    args = build_parser().parse_args(argv)

    config = StartupConfig(
        verbose=args.verbose,
        silent=args.silent,
        tcp_addresses=resolve_addresses(args.tcp, Protocol.TCP),
        udp_addresses=resolve_addresses(args.udp, Protocol.UDP),
    )
    if not config.tcp_addresses and not config.udp_addresses:
        raise NoSocketsSpecified()
    return config
