"""
Response framing for both transports.

Replies are plain ASCII written into fixed-capacity buffers. Text that does
not fit is cut at the buffer boundary rather than treated as an error.
"""

TCP_RESPONSE_SIZE = 256
UDP_BUF_SIZE = 1400


def format_address(sockaddr):
    """Render a socket address tuple as ip:port, or [ip]:port for IPv6."""
    host, port = sockaddr[0], sockaddr[1]
    if len(sockaddr) == 4 or ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def local_address(sock):
    try:
        return format_address(sock.getsockname())
    except OSError:
        return "<closed>"


def bounded(text, capacity):
    """Encode text as ASCII, stopping at capacity bytes."""
    return text.encode("ascii", errors="replace")[:capacity]


def tcp_response(remote, number):
    text = f"you: {remote} | connection_number: {number}"
    return bounded(text, TCP_RESPONSE_SIZE).ljust(TCP_RESPONSE_SIZE, b"\0")


def udp_response(remote, nbytes, number):
    text = f"you: {remote} | bytes: {nbytes} | packet_number: {number}"
    return bounded(text, UDP_BUF_SIZE)
