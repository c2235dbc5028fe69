import errno
import socket
import time

DEFAULT_TIMEOUT = 5.0


def ipv6_available():
    """
    Check if IPv6 loopback (::1) is available on this system.
    Returns True if IPv6 can be used, False otherwise.
    """
    try:
        with socket.socket(socket.AF_INET6, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind(('::1', 0))
            return True
    except OSError:
        return False


def get_free_port(ipv6=False, kind=socket.SOCK_STREAM):
    """
    Get a free port on localhost.
    Note: There's an inherent race condition between this function returning
    and the caller binding to the port. We use SO_REUSEADDR to mitigate this.

    Args:
        ipv6: If True, get a port on IPv6 loopback (::1)
        kind: socket.SOCK_STREAM or socket.SOCK_DGRAM
    """
    family, host = (socket.AF_INET6, '::1') if ipv6 else (socket.AF_INET, '127.0.0.1')
    with socket.socket(family, kind) as s:
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind((host, 0))
        return s.getsockname()[1]


def wait_for_port(port, host='127.0.0.1', timeout=DEFAULT_TIMEOUT):
    """Wait for a port to be open."""
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            with socket.create_connection((host, port), timeout=0.1):
                return True
        except OSError:
            time.sleep(0.1)
    return False


def bound_port(loop):
    """Port a running transport loop is bound to (its address ends in :port)."""
    return int(loop.address.rsplit(':', 1)[1])


def recv_until_close(sock):
    """Read from sock until the peer closes its write side."""
    chunks = []
    while True:
        data = sock.recv(4096)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks)


def response_text(data):
    """Strip the zero padding of a fixed-size TCP reply."""
    return data.split(b"\0", 1)[0].decode("ascii")


def tcp_request(port, host='127.0.0.1', timeout=DEFAULT_TIMEOUT):
    """
    Connect, read the whole reply.
    Returns (raw reply bytes, "ip:port" of our end as the server sees it).
    """
    with socket.create_connection((host, port), timeout=timeout) as s:
        local = s.getsockname()
        ipv6 = s.family == socket.AF_INET6
        data = recv_until_close(s)
    if ipv6:
        return data, f"[{local[0]}]:{local[1]}"
    return data, f"{local[0]}:{local[1]}"


def udp_request(port, payload=b"ping", host='127.0.0.1', timeout=DEFAULT_TIMEOUT):
    """Send one datagram and wait for the reply. Returns (reply text, our "ip:port")."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        s.settimeout(timeout)
        s.bind((host, 0))
        s.sendto(payload, (host, port))
        data, _ = s.recvfrom(65535)
        local = s.getsockname()
    return data.decode("ascii"), f"{local[0]}:{local[1]}"


def wait_for_udp_reply(port, payload=b"ping", host='127.0.0.1', timeout=DEFAULT_TIMEOUT):
    """
    Keep sending one datagram until a reply comes back, for servers that may
    still be starting. Returns what udp_request returns.
    """
    start_time = time.time()
    while True:
        try:
            return udp_request(port, payload, host, timeout=0.5)
        except socket.timeout:
            if time.time() - start_time > timeout:
                raise


class FakeSocket:
    """
    Stand-in for a bound listener/socket with scripted accept/recvfrom results.

    select() always reports it readable (it borrows the fd of a socketpair end
    with unread data). Each accept()/recvfrom() call consumes the next script
    item; exceptions in the script are raised, anything else is returned.
    Once the script runs out every call fails with EIO.
    """

    def __init__(self, script=(), sockname=('127.0.0.1', 6969), send_results=()):
        self._reader, self._writer = socket.socketpair()
        self._writer.sendall(b"x")
        self.script = list(script)
        self.send_results = list(send_results)
        self.sockname = sockname
        self.calls = 0
        self.sent = []
        self.closed = False

    def fileno(self):
        return self._reader.fileno()

    def getsockname(self):
        return self.sockname

    def _next(self):
        self.calls += 1
        if self.script:
            item = self.script.pop(0)
        else:
            item = OSError(errno.EIO, "scripted failure")
        if isinstance(item, BaseException):
            raise item
        return item

    def accept(self):
        return self._next()

    def recvfrom(self, bufsize):
        data, addr = self._next()
        return data[:bufsize], addr

    def sendto(self, data, addr):
        self.sent.append((data, addr))
        if self.send_results:
            result = self.send_results.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        return len(data)

    def close(self):
        self.closed = True
        self._reader.close()
        self._writer.close()
