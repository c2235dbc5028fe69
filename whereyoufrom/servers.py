"""
Transport loops: one thread per bound socket.

Each loop owns its socket, its connection counter and its error breaker.
The only thing shared between loops is the stop event used for shutdown.
"""
import select
import socket
import threading

from .breaker import ErrorBreaker
from .config import Protocol
from .log import get_logger
from .responses import UDP_BUF_SIZE, format_address, local_address, tcp_response, udp_response

POLL_INTERVAL = 0.5
WRITE_TIMEOUT = 10.0


class BaseServer(threading.Thread):
    protocol = None
    action = None

    def __init__(self, sock, stop_event=None, log=None, breaker=None):
        super().__init__()
        self.sock = sock
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.log = log or get_logger()
        self.breaker = breaker or ErrorBreaker()
        self.address = local_address(sock)
        self.counter = 0
        self.name = f"{self.protocol.value}-{self.address}"
        self.daemon = True

    def run(self):
        try:
            while not self.stop_event.is_set() and not self.breaker.closed:
                try:
                    r, _, _ = select.select([self.sock], [], [], POLL_INTERVAL)
                except OSError as e:
                    self.on_error(e)
                    continue
                if r:
                    self.serve_ready()
        except Exception:
            self.log.exception("%s socket %s stopped unexpectedly", self.protocol.name, self.address)
        finally:
            self.sock.close()

    def on_error(self, error):
        self.log.warning("Error while %s from %s socket %s: %s",
                         self.action, self.protocol.name, self.address, error)
        if self.breaker.record_failure():
            self.log.error("%s socket %s closed due to too many consecutive errors.",
                           self.protocol.name, self.address)

    def serve_ready(self):
        raise NotImplementedError


class TcpServer(BaseServer):
    """Accept loop. Every connection gets its reply from its own thread."""
    protocol = Protocol.TCP
    action = "accepting"

    def serve_ready(self):
        try:
            conn, remote = self.sock.accept()
        except BlockingIOError:
            # Readiness was stale (peer went away before we got to it)
            return
        except OSError as e:
            self.on_error(e)
            return

        self.counter += 1
        self.breaker.record_success()
        remote_address = format_address(remote)
        self.log.info("TCP listener %s accepted connection from %s", self.address, remote_address)

        client_thread = threading.Thread(target=self.handle_client,
                                         args=(conn, remote_address, self.counter))
        client_thread.daemon = True
        try:
            client_thread.start()
        except RuntimeError as e:
            self.log.error("TCP socket %s failed to respond to %s: %s", self.address, remote_address, e)
            conn.close()

    def handle_client(self, conn, remote_address, number):
        try:
            conn.settimeout(WRITE_TIMEOUT)
            conn.sendall(tcp_response(remote_address, number))
        except OSError as e:
            self.log.error("TCP socket %s failed to respond to %s: %s", self.address, remote_address, e)
            conn.close()
            return

        self.log.debug("TCP socket %s responded to %s with connection number %d",
                       self.address, remote_address, number)
        try:
            conn.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone, the reply was handed to the kernel
        finally:
            conn.close()


class UdpServer(BaseServer):
    """Receive loop. Each datagram is answered before the next one is read."""
    protocol = Protocol.UDP
    action = "receiving"

    def serve_ready(self):
        try:
            data, remote = self.sock.recvfrom(UDP_BUF_SIZE)
        except BlockingIOError:
            return
        except OSError as e:
            self.on_error(e)
            return

        self.counter += 1
        self.breaker.record_success()
        nbytes = len(data)
        remote_address = format_address(remote)
        self.log.info("UDP socket %s received %d bytes from %s", self.address, nbytes, remote_address)

        reply = udp_response(remote_address, nbytes, self.counter)
        try:
            sent = self.sock.sendto(reply, remote)
        except OSError as e:
            self.log.error("UDP socket %s failed to respond to %s: %s", self.address, remote_address, e)
            return

        if sent != len(reply):
            self.log.error("UDP socket %s should have sent %d bytes to %s, but %d were sent",
                           self.address, len(reply), remote_address, sent)
        else:
            self.log.debug("UDP socket %s responded to %s with packet number %d",
                           self.address, remote_address, self.counter)


SERVER_CLASSES = {
    Protocol.TCP: TcpServer,
    Protocol.UDP: UdpServer,
}
