import os
import socket
import threading
import logging

from department.address import get_local_ip
from protocol import messages
from protocol.file_handler import list_shared_files
from protocol.handler import handle_department_request
from protocol.line_handler import send_line, recv_line, open_reader

# Set up module-level logging
logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)
if not logger.hasHandlers():
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)
    logger.addHandler(ch)


class DepartmentServer:
    def __init__(self, name, port, directory, index_host, index_port,
                 buffer_size=4096, host="0.0.0.0", advertise_host=None):
        self.name = name
        self.port = port
        self.directory = directory
        self.index_host = index_host
        self.index_port = index_port
        self.buffer_size = buffer_size
        self.host = host
        self.advertise_host = advertise_host
        self.sock = None
        self.registered = False
        self._running = False

        if not os.path.isdir(directory):
            os.makedirs(directory, exist_ok=True)
            logger.info(f"Created directory: {os.path.abspath(directory)}")
        logger.debug(f"Department server '{name}' initialized for {os.path.abspath(directory)}")

    def bind(self):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
            sock.listen()
        except OSError:
            sock.close()
            raise
        self.sock = sock
        self.port = sock.getsockname()[1]
        self._running = True
        logger.info(f"{self.name} bound to {self.host} on port {self.port}")

    def start(self):
        """Bind, register once with the index server, then serve until stopped."""
        self.bind()
        self.register_with_index()
        logger.info(f"{self.name} ready for connections...")
        try:
            self.listen_for_requests()
        finally:
            self.stop()

    def start_service(self):
        """Like start(), but the accept loop runs in a background thread."""
        self.bind()
        self.register_with_index()
        threading.Thread(target=self.listen_for_requests, daemon=True).start()

    def shared_files(self):
        files = []
        for name in list_shared_files(self.directory):
            if messages.is_transferable_name(name):
                files.append(name)
            else:
                logger.warning(f"{self.name}: Skipping '{name}', the name cannot be registered")
        return files

    def register_with_index(self):
        """
        One-shot registration. Any failure is logged and startup carries on,
        the server still answers direct connections.
        """
        logger.info(f"{self.name}: Registering with Index Server at {self.index_host}:{self.index_port}")
        local_ip = self.advertise_host or get_local_ip()
        logger.debug(f"{self.name}: Advertising address {local_ip}")
        files = self.shared_files()
        if files:
            logger.info(f"{self.name}: Found {len(files)} files")
        else:
            logger.info(f"{self.name}: No files found in directory: {self.directory}")

        registration = messages.format_register(self.name, local_ip, self.port, files)
        try:
            with socket.create_connection((self.index_host, self.index_port)) as sock:
                logger.debug(f"{self.name}: Sending registration: {registration}")
                send_line(sock, registration)
                with open_reader(sock) as reader:
                    response = recv_line(reader)
        except ConnectionRefusedError:
            logger.error(f"{self.name}: Cannot connect to Index Server at {self.index_host}:{self.index_port}")
            return False
        except OSError as e:
            logger.error(f"{self.name}: Registration error: {e}")
            return False

        if response is not None and response.startswith(messages.REGISTERED):
            logger.info(f"{self.name}: Registration successful")
            self.registered = True
        else:
            logger.warning(f"{self.name}: Registration failed, response: {response}")
        return self.registered

    def listen_for_requests(self):
        while self._running:
            try:
                conn, addr = self.sock.accept()
            except OSError as e:
                if self._running:
                    logger.error(f"{self.name}: Accept failed: {e}")
                    continue
                break
            logger.debug(f"{self.name}: New connection from {addr}")
            threading.Thread(target=self.handle_req, args=(conn, addr), daemon=True).start()

    def handle_req(self, conn, addr):
        try:
            result = handle_department_request(conn, addr, self)
            if result["status"] == "ignored":
                logger.warning(f"{self.name}: Ignored request from {addr}: {result.get('reason')}")
            elif result["status"] == "error":
                logger.error(f"{self.name}: Error during request from {addr}: {result.get('reason')}")
        except Exception as e:
            logger.error(f"{self.name}: Error with client {addr}: {e}")
        finally:
            conn.close()
            logger.debug(f"{self.name}: Connection closed: {addr}")

    def stop(self):
        if not self._running:
            return
        self._running = False
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()
        logger.info(f"{self.name} stopped")
