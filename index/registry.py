import threading
import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

FileLocation = namedtuple("FileLocation", ["server_name", "filename"])
ServerInfo = namedtuple("ServerInfo", ["host", "port"])


def index_key(filename):
    return filename.strip().lower()


class Registry:
    """
    In-memory map of lowercase filename -> [FileLocation] and
    server name -> ServerInfo, shared by every index connection.

    Each public method takes the internal lock for its own duration only;
    there is no atomicity across calls. Lists handed out are copies.
    """

    def __init__(self, replace_on_reregister=False):
        self.replace_on_reregister = replace_on_reregister
        self._lock = threading.Lock()
        self._file_index = {}   # {key: [FileLocation]}
        self._servers = {}      # {server_name: ServerInfo}

    def register(self, server_name, host, port, files):
        """
        Record a server's address then index each of its files.
        Returns the number of files indexed.
        """
        with self._lock:
            self._servers[server_name] = ServerInfo(host, int(port))
            if self.replace_on_reregister:
                self._drop_server_locations(server_name)
            count = 0
            for filename in files:
                filename = filename.strip()
                if not filename:
                    continue
                self._file_index.setdefault(index_key(filename), []).append(
                    FileLocation(server_name, filename))
                count += 1
        logger.info(f"Registered {server_name} at {host}:{port} with {count} files")
        return count

    def _drop_server_locations(self, server_name):
        # caller holds the lock
        for key in list(self._file_index):
            kept = [loc for loc in self._file_index[key] if loc.server_name != server_name]
            if kept:
                self._file_index[key] = kept
            else:
                del self._file_index[key]

    def lookup(self, filename):
        """
        Return [(FileLocation, ServerInfo)] for a filename, in registration order.
        Locations whose server has no address on record are left out.
        """
        with self._lock:
            locations = list(self._file_index.get(index_key(filename), []))
            servers = dict(self._servers)
        resolved = []
        for loc in locations:
            info = servers.get(loc.server_name)
            if info is None:
                logger.warning(f"No address recorded for server {loc.server_name}, skipping {loc.filename}")
                continue
            resolved.append((loc, info))
        return resolved

    def keys(self):
        with self._lock:
            return list(self._file_index)

    def get_server(self, server_name):
        with self._lock:
            return self._servers.get(server_name)
