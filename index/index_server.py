import socket
import threading
import logging
from concurrent.futures import ThreadPoolExecutor

from index.registry import Registry
from protocol.handler import handle_index_request

# Set up module-level logging
logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)
if not logger.hasHandlers():
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)
    logger.addHandler(ch)

DEFAULT_PORT = 9090
DEFAULT_POOL_SIZE = 10


class IndexServer:
    def __init__(self, host="0.0.0.0", port=DEFAULT_PORT, registry=None, pool_size=DEFAULT_POOL_SIZE):
        self.host = host
        self.port = port
        self.registry = registry if registry is not None else Registry()
        self.pool_size = pool_size
        self.sock = None
        self.pool = None
        self._running = False

    def bind(self):
        """Open the listening socket. A bind failure propagates to the caller."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
            sock.listen()
        except OSError:
            sock.close()
            raise
        self.sock = sock
        # port 0 asks the OS for a free port
        self.port = sock.getsockname()[1]
        self.pool = ThreadPoolExecutor(max_workers=self.pool_size, thread_name_prefix="index-worker")
        self._running = True
        logger.info(f"Index Server listening on {self.host}:{self.port} with {self.pool_size} workers")

    def start_service(self):
        """Bind and run the accept loop in a background thread."""
        self.bind()
        threading.Thread(target=self.listen_for_requests, daemon=True).start()

    def serve_forever(self):
        self.bind()
        try:
            self.listen_for_requests()
        finally:
            self.stop()

    def listen_for_requests(self):
        while self._running:
            try:
                conn, addr = self.sock.accept()
            except OSError as e:
                if self._running:
                    logger.error(f"Accept failed: {e}")
                    continue
                break
            logger.debug(f"Accepted connection from {addr}")
            # queued until a worker is free
            self.pool.submit(self.handle_req, conn, addr)

    def handle_req(self, conn, addr):
        try:
            result = handle_index_request(conn, addr, self.registry)
            if result["status"] == "ignored":
                logger.warning(f"Ignored request from {addr}: {result.get('reason')}")
            else:
                logger.debug(f"Handled request from {addr}: {result}")
        except Exception as e:
            logger.error(f"Handler error for {addr}: {e}")
        finally:
            conn.close()

    def stop(self):
        if not self._running:
            return
        self._running = False
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()
        self.pool.shutdown(wait=False)
        logger.info("Index Server stopped")
