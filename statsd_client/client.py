from __future__ import annotations

import logging
import random
import socket
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .config_loader import DEFAULT_HOST, DEFAULT_PORT, StatsdCfg, validate_port
from .metric import COUNTER, TIMING, MetricUpdate, Number, format_value
from .transport import open_udp_socket

logger = logging.getLogger(__name__)

SocketFactory = Callable[[str, int], socket.socket]
MetricNames = Union[str, Sequence[str], None]


class Client:
    """Minimal StatsD client (UDP).

    Every metric operation returns True when the update was handed to a socket
    and False when nothing was sent (disabled, no names, sampled out, or the
    daemon address could not be resolved/opened). Transport errors never
    propagate to the caller.

    With ``reuse_socket`` enabled one connected socket is kept open between
    calls; otherwise each call opens a socket and closes it afterwards.
    Changing host, port or enabled closes the kept socket.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        enabled: bool = True,
        reuse_socket: bool = False,
        namespace: str = "",
        socket_factory: SocketFactory = open_udp_socket,
        rng: Optional[random.Random] = None,
    ):
        self._lock = threading.RLock()
        self._socket: Optional[socket.socket] = None
        self._host = str(host)
        self._port = validate_port(port)
        self._enabled = bool(enabled)
        self._reuse_socket = bool(reuse_socket)
        self.namespace = (namespace or "").rstrip(".")
        self._socket_factory = socket_factory
        self._random = rng.random if rng is not None else random.random

    @classmethod
    def from_config(cls, cfg: StatsdCfg, **kwargs) -> Client:
        return cls(
            host=cfg.host,
            port=cfg.port,
            enabled=cfg.enabled,
            reuse_socket=cfg.reuse_socket,
            namespace=cfg.namespace,
            **kwargs,
        )

    # Configuration

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        with self._lock:
            self._close_socket()
            self._host = str(value)

    @property
    def port(self) -> int:
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        port = validate_port(value)
        with self._lock:
            self._close_socket()
            self._port = port

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        with self._lock:
            self._close_socket()
            self._enabled = bool(value)

    @property
    def reuse_socket(self) -> bool:
        return self._reuse_socket

    @reuse_socket.setter
    def reuse_socket(self, value: bool) -> None:
        # A socket already open stays open until the next config change or close().
        with self._lock:
            self._reuse_socket = bool(value)

    # Metrics

    def timing(self, name: str, elapsed_ms: Number, sample_rate: Number = 1) -> bool:
        """Log an elapsed time in milliseconds."""
        return self._send([name], elapsed_ms, TIMING, sample_rate)

    def count(self, name: str, value: Number, sample_rate: Number = 1) -> bool:
        return self._send([name], value, COUNTER, sample_rate)

    def increment(self, names: MetricNames, sample_rate: Number = 1) -> bool:
        return self.update_stats(names, 1, sample_rate)

    def decrement(self, names: MetricNames, sample_rate: Number = 1) -> bool:
        return self.update_stats(names, -1, sample_rate)

    def update_stats(self, names: MetricNames, delta: Number = 1, sample_rate: Number = 1) -> bool:
        """Update one or more counters by ``delta``.

        ``names`` is a single metric name or a sequence of names. Repeated names
        are sent as separate updates.
        """

        if not names:
            return False
        if isinstance(names, str):
            names = [names]

        return self._send(names, delta, COUNTER, sample_rate)

    # Sending

    def _fmt(self, name: str) -> str:
        return f"{self.namespace}.{name}" if self.namespace else name

    def _sample(self, updates: Iterable[MetricUpdate], sample_rate: Number) -> List[MetricUpdate]:
        if sample_rate < 1:
            return [u.sampled(sample_rate) for u in updates if self._random() <= sample_rate]
        return list(updates)

    def _send(self, names: Iterable[str], payload: Number, metric_type: str, sample_rate: Number = 1) -> bool:
        """Format, sample and write one update per name."""
        if not self.enabled:
            return False

        try:
            value = format_value(payload, metric_type)
            updates = [MetricUpdate(self._fmt(name), value) for name in names]
            sampled = self._sample(updates, sample_rate)
            if not sampled:
                return False

            with self._lock:
                if self._reuse_socket:
                    return self._send_with_kept_socket(sampled)
                return self._send_with_transient_socket(sampled)
        except Exception:  # noqa: BLE001
            # Never fail the application due to monitoring.
            logger.debug("dropping %s metric update(s)", metric_type, exc_info=True)
            return False

    def _send_with_kept_socket(self, updates: List[MetricUpdate]) -> bool:
        sock = self._get_socket()
        if sock is None:
            return False

        for u in updates:
            if not self._write_data_to_socket(sock, u.line()):
                # Remaining updates in this batch are dropped.
                self._close_socket()
                break
        return True

    def _send_with_transient_socket(self, updates: List[MetricUpdate]) -> bool:
        sock = self._open_socket()
        if sock is None:
            return False

        try:
            for u in updates:
                self._write_data_to_socket(sock, u.line())
        finally:
            self._release(sock)
        return True

    # Socket lifecycle

    def _open_socket(self) -> Optional[socket.socket]:
        try:
            return self._socket_factory(self._host, self._port)
        except (OSError, UnicodeError):
            logger.debug("cannot open statsd socket to %s:%s", self._host, self._port, exc_info=True)
            return None

    def _get_socket(self) -> Optional[socket.socket]:
        if self._socket is None:
            self._socket = self._open_socket()
        return self._socket

    def _close_socket(self) -> None:
        with self._lock:
            sock, self._socket = self._socket, None
        if sock is not None:
            self._release(sock)

    @staticmethod
    def _release(sock: socket.socket) -> None:
        try:
            sock.close()
        except OSError:
            logger.debug("error closing statsd socket", exc_info=True)

    def _write_data_to_socket(self, sock: socket.socket, payload: str) -> bool:
        """Write one datagram. Returns False if the write failed."""
        try:
            sock.send(payload.encode("utf-8"))
        except OSError:
            logger.debug("cannot send metric", extra={"data": payload}, exc_info=True)
            return False
        logger.debug("sending metric", extra={"data": payload})
        return True

    def close(self) -> None:
        self._close_socket()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_socket", None) is not None:
            self.close()
