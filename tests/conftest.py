import socket

import pytest

from department.department_server import DepartmentServer
from index.index_server import IndexServer
from index.registry import Registry

HOST = "127.0.0.1"


def raw_request(port, line, host=HOST):
    """Send one request line and return everything the server sends back."""
    with socket.create_connection((host, port), timeout=5) as sock:
        sock.sendall((line + "\n").encode("utf-8"))
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def request_line(port, line, host=HOST):
    return raw_request(port, line, host).decode("utf-8").rstrip("\n")


@pytest.fixture
def index_server():
    server = IndexServer(host=HOST, port=0, registry=Registry(), pool_size=4)
    server.start_service()
    yield server
    server.stop()


@pytest.fixture
def make_department(tmp_path):
    servers = []

    def factory(name, files=None, index_port=None, subdir=None):
        directory = tmp_path / (subdir or name)
        directory.mkdir(exist_ok=True)
        for filename, content in (files or {}).items():
            (directory / filename).write_bytes(content)
        # an index port nobody listens on makes registration fail fast
        server = DepartmentServer(name, 0, str(directory), HOST, index_port or 1,
                                  buffer_size=1024, host=HOST, advertise_host=HOST)
        server.start_service()
        servers.append(server)
        return server

    yield factory
    for server in servers:
        server.stop()
