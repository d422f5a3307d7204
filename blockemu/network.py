"""Peer-to-peer TCP messaging with simulated delay, jitter and bandwidth."""

from __future__ import annotations

import logging
import random
import socket
import threading
import time
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)

UNLIMITED_BANDWIDTH = 0x7FFFFFFF
_READ_CHUNK = 1024

MessageHandler = Callable[[str, bytes], None]


class RateLimiter:
    """Token bucket refilled at ``rate`` tokens per second up to ``burst``."""

    def __init__(
        self,
        rate: float,
        burst: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rate = float(rate)
        self.burst = int(burst)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(self.burst)
        self._last = clock()
        self._lock = threading.Lock()

    def wait_n(self, n: int) -> float:
        """Take n tokens, sleeping until they are available; return the wait in seconds."""
        if n <= 0:
            return 0.0
        if n > self.burst:
            raise ValueError(f"requested {n} tokens exceeds burst {self.burst}")
        with self._lock:
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._last = now
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            if self._tokens >= n:
                self._tokens -= n
                return 0.0
            if self.rate <= 0:
                raise ValueError("rate limiter cannot refill tokens")
            self._tokens -= n
            delay = -self._tokens / self.rate
        self._sleep(delay)
        return delay


def _throttle(limiter: RateLimiter, n: int) -> None:
    remaining = n
    while remaining > 0:
        chunk = min(limiter.burst, remaining) or remaining
        limiter.wait_n(chunk)
        remaining -= chunk


def _split_addr(addr: str) -> tuple[str, int]:
    host, _, port = addr.rpartition(":")
    if not host or not port.isdigit():
        raise ValueError(f"invalid address {addr!r}")
    return host, int(port)


class P2PNetwork:
    """Pool of outgoing TCP connections with simulated network conditions."""

    def __init__(
        self,
        delay: int = 0,
        jitter_range: int = 0,
        bandwidth: int = 0,
        *,
        rng: Optional[random.Random] = None,
        on_message: Optional[MessageHandler] = None,
    ) -> None:
        self.delay = max(delay, 0)
        self.jitter_range = max(jitter_range, 0)
        self.bandwidth = bandwidth if bandwidth >= 0 else UNLIMITED_BANDWIDTH
        self._rng = rng if rng is not None else random.Random(time.time_ns() // 1000)
        self._download = RateLimiter(self.bandwidth, self.bandwidth)
        self._upload = RateLimiter(self.bandwidth, self.bandwidth)
        self._on_message = on_message
        self._pool: dict[str, socket.socket] = {}
        self._lock = threading.Lock()

    def _next_delay_ms(self) -> int:
        if self.jitter_range == 0:
            return self.delay
        return (
            self._rng.randrange(self.jitter_range)
            - self.jitter_range // 2
            + self.delay
        )

    def tcp_dial(self, content: bytes, addr: str) -> threading.Thread:
        """Send content plus a newline to addr in the background."""
        thread = threading.Thread(
            target=self._dial, args=(bytes(content), addr), daemon=True
        )
        thread.start()
        return thread

    def _dial(self, content: bytes, addr: str) -> None:
        time.sleep(max(0, self._next_delay_ms()) / 1000)
        with self._lock:
            conn = self._pool.get(addr)
            if conn is not None:
                try:
                    conn.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
                except OSError:
                    del self._pool[addr]
                    conn = None
            if conn is None:
                try:
                    conn = socket.create_connection(_split_addr(addr))
                except (OSError, ValueError) as exc:
                    logger.warning("Connect error %s", exc)
                    return
                self._pool[addr] = conn
                threading.Thread(
                    target=self.read_from_conn, args=(addr,), daemon=True
                ).start()
            self._write(conn, content + b"\n")

    def _write(self, conn: socket.socket, data: bytes) -> None:
        try:
            _throttle(self._upload, len(data))
            conn.sendall(data)
        except (OSError, ValueError) as exc:
            logger.warning("Write error %s", exc)

    def broadcast(
        self, sender: str, receivers: Iterable[str], msg: bytes
    ) -> list[threading.Thread]:
        """Send msg to every receiver except the sender."""
        return [self.tcp_dial(msg, ip) for ip in receivers if ip != sender]

    def close_all(self) -> None:
        """Close every pooled connection and empty the pool."""
        with self._lock:
            for conn in self._pool.values():
                conn.close()
            self._pool = {}

    def read_from_conn(self, addr: str) -> None:
        """Read newline-terminated messages from the pooled connection to addr."""
        with self._lock:
            conn = self._pool.get(addr)
        if conn is None:
            raise KeyError(f"no connection to {addr}")
        buffer = bytearray()
        while True:
            try:
                _throttle(self._download, _READ_CHUNK)
                chunk = conn.recv(_READ_CHUNK)
            except (OSError, ValueError) as exc:
                logger.debug("Read error for address %s: %s", addr, exc)
                break
            if not chunk:
                break
            buffer += chunk
            while (end := buffer.find(b"\n")) >= 0:
                line = bytes(buffer[:end])
                del buffer[: end + 1]
                logger.info("Received from %s: %r", addr, line)
                if self._on_message is not None:
                    self._on_message(addr, line)