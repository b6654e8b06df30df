from __future__ import annotations

import logging
import queue
import socket
import threading
from typing import Iterator, Optional

from .net import open_client, open_server, recv_text, send_text

logger = logging.getLogger(__name__)

# queued by the receive loop when the link goes away
_CLOSED = object()


class NetworkPeer:
    """One end of the point-to-point link.

    Connecting and receiving happen on daemon threads so the GUI can render
    immediately. Inbound texts land in a queue in arrival order; the owning
    loop drains them with ``try_get`` or iterates ``messages()``.
    """

    def __init__(self, mode: str, host: Optional[str], port: int, bind: str = "0.0.0.0") -> None:
        self.mode = mode  # 'host' or 'client'
        self.sock: Optional[socket.socket] = None
        self.srv: Optional[socket.socket] = None
        self.recv_thread: Optional[threading.Thread] = None
        self.recv_queue: "queue.Queue[object]" = queue.Queue()
        self.stopped = threading.Event()
        self.connected = False
        self.disconnected = False

        if self.mode == "host":
            threading.Thread(target=self._host_wait_for_client, args=(bind, port), daemon=True).start()
        elif self.mode == "client":
            threading.Thread(target=self._client_connect, args=(host, port), daemon=True).start()

    @classmethod
    def from_socket(cls, sock: socket.socket) -> "NetworkPeer":
        """Wrap an already connected socket."""
        peer = cls("attached", None, 0)
        peer._attach(sock)
        return peer

    def _attach(self, sock: socket.socket) -> None:
        self.sock = sock
        self.connected = True
        self._start_recv_loop()

    def _host_wait_for_client(self, bind: str, port: int) -> None:
        try:
            logger.info("waiting for a player on %s:%d", bind, port)
            srv, conn, addr = open_server(bind, port)
        except OSError as e:
            logger.error("could not accept a connection on %s:%d: %s", bind, port, e)
            self._mark_closed()
            return
        if self.stopped.is_set():
            conn.close()
            srv.close()
            return
        self.srv = srv
        logger.info("player connected from %s:%d", addr[0], addr[1])
        self._attach(conn)

    def _client_connect(self, host: Optional[str], port: int) -> None:
        try:
            sock = open_client(host or "localhost", port)
        except OSError as e:
            logger.error("could not connect to %s:%d: %s", host, port, e)
            self._mark_closed()
            return
        logger.info("connected to %s:%d", host, port)
        self._attach(sock)

    def _start_recv_loop(self) -> None:
        def loop() -> None:
            try:
                while not self.stopped.is_set():
                    text = recv_text(self.sock)
                    logger.debug("recv %r", text)
                    self.recv_queue.put(text)
            except OSError as e:
                # ConnectionError included
                if not self.stopped.is_set():
                    logger.warning("connection lost: %s", e)
            finally:
                self._mark_closed()

        self.recv_thread = threading.Thread(target=loop, daemon=True)
        self.recv_thread.start()

    def _mark_closed(self) -> None:
        if self.disconnected:
            return
        self.connected = False
        self.disconnected = True
        self.recv_queue.put(_CLOSED)

    def send(self, text: str) -> None:
        if self.sock is None or not self.connected:
            logger.debug("not connected, dropping %r", text)
            return
        try:
            send_text(self.sock, text)
        except OSError as e:
            logger.warning("send failed: %s", e)
            self._mark_closed()

    def try_get(self, timeout: float = 0.0) -> Optional[str]:
        """Next inbound text, or None if nothing arrived (or the link is gone)."""
        try:
            item = self.recv_queue.get(timeout=timeout) if timeout else self.recv_queue.get_nowait()
        except queue.Empty:
            return None
        if item is _CLOSED:
            # keep the marker for later callers
            self.recv_queue.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def messages(self) -> Iterator[str]:
        """Blocking, in-order inbound texts; ends when the connection does."""
        while True:
            item = self.recv_queue.get()
            if item is _CLOSED:
                self.recv_queue.put(_CLOSED)
                return
            yield item  # type: ignore[misc]

    def close(self) -> None:
        self.stopped.set()
        if self.sock is not None:
            try:
                # wakes the receive thread blocked in recv()
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        for s in (self.sock, self.srv):
            if s is None:
                continue
            try:
                s.close()
            except OSError:
                pass
        self._mark_closed()
