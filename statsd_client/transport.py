from __future__ import annotations

import socket


def open_udp_socket(host: str, port: int) -> socket.socket:
    """Open a datagram socket connected to host:port.

    Tries every address the resolver returns and keeps the first one that
    connects. Resolution and open failures are raised as OSError.
    """

    last_error: OSError = OSError(f"getaddrinfo returned no addresses for {host}:{port}")
    for family, type_, proto, _, addr in socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM):
        sock = socket.socket(family, type_, proto)
        try:
            sock.connect(addr)
        except OSError as e:
            sock.close()
            last_error = e
            continue
        return sock
    raise last_error
