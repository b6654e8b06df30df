from __future__ import annotations

import socket
import struct
from typing import Tuple


# Length-prefixed UTF-8 text frames over TCP


def send_text(sock: socket.socket, text: str) -> None:
    data = text.encode("utf-8")
    header = struct.pack("!I", len(data))
    sock.sendall(header + data)


def recv_exact(sock: socket.socket, num_bytes: int) -> bytes:
    chunks = []
    remaining = num_bytes
    while remaining > 0:
        chunk = sock.recv(remaining)
        if not chunk:
            raise ConnectionError("socket closed")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def recv_text(sock: socket.socket) -> str:
    header = recv_exact(sock, 4)
    (length,) = struct.unpack("!I", header)
    body = recv_exact(sock, length)
    # a bad byte sequence is the session's noise to ignore, not a dead link
    return body.decode("utf-8", errors="replace")


def open_server(bind: str, port: int) -> Tuple[socket.socket, socket.socket, Tuple[str, int]]:
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind((bind, port))
    srv.listen(1)
    conn, addr = srv.accept()
    return srv, conn, addr


def open_client(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.connect((host, port))
    return sock
