"""
Binds every configured socket, runs one transport loop per socket and stops
them all when an interrupt arrives.
"""
import signal
import threading

from .bind import bind_tcp_listeners, bind_udp_sockets
from .config import Protocol
from .log import get_logger
from .servers import SERVER_CLASSES

JOIN_TIMEOUT = 2.0
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)

BINDERS = {
    Protocol.TCP: bind_tcp_listeners,
    Protocol.UDP: bind_udp_sockets,
}


class NoSocketsBound(Exception):
    def __str__(self):
        return "No TCP nor UDP sockets could be bound. Aborting."


class Server:
    def __init__(self, config, log=None):
        self.config = config
        self.log = log or get_logger()
        self.stop_event = threading.Event()
        self.loops = []

    def bind(self):
        """Bind both protocols. Returns {protocol: [socket, ...]}."""
        bound = {}
        for protocol in Protocol:
            addresses = self.config.addresses(protocol)
            bound[protocol] = BINDERS[protocol](addresses, self.log)
            if addresses and not bound[protocol]:
                # Reported even with --silent
                self.log.error("No %s sockets were bound!", protocol.name)

        if not any(bound.values()):
            raise NoSocketsBound()
        return bound

    def start(self):
        for protocol, sockets in self.bind().items():
            server_class = SERVER_CLASSES[protocol]
            for sock in sockets:
                loop = server_class(sock, stop_event=self.stop_event, log=self.log)
                loop.start()
                self.loops.append(loop)
        return self

    def loops_for(self, protocol):
        return [loop for loop in self.loops if loop.protocol is protocol]

    def request_stop(self, *_args):
        """Signal-safe: only flips the shared stop event."""
        self.stop_event.set()

    def shutdown(self):
        self.stop_event.set()
        for loop in self.loops:
            loop.join(timeout=JOIN_TIMEOUT)

    def install_signal_handlers(self):
        for sig in STOP_SIGNALS:
            signal.signal(sig, self.request_stop)

    def serve_forever(self):
        while not self.stop_event.wait(timeout=1.0):
            pass
        self.log.info("Received break signal, shutting down")
        self.shutdown()


def run_server(config, log=None):
    """Run until interrupted. Returns the process exit code."""
    log = log or get_logger()
    server = Server(config, log)
    server.install_signal_handlers()
    try:
        server.start()
    except NoSocketsBound as e:
        log.error("%s", e)
        return 1
    server.serve_forever()
    return 0
