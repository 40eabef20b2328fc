import os
import socket
import logging

from protocol import messages
from protocol.errors import (FileNotFoundOnNetwork, ProtocolError, RemoteError,
                             SelectionError, TransferError)
from protocol.line_handler import send_line, recv_line, open_reader, copy_exact

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


class FileClient:
    """
    Two-step access to the network: ask the index server where a file
    lives, then talk to that department server directly. Every call
    opens its own short-lived connection.
    """

    def __init__(self, index_host, index_port, download_dir="downloads", buffer_size=4096, timeout=None):
        self.index_host = index_host
        self.index_port = index_port
        self.download_dir = download_dir
        self.buffer_size = buffer_size
        self.timeout = timeout

    def _request(self, host, port, line):
        """Send one request line and return the single response line."""
        with socket.create_connection((host, port), timeout=self.timeout) as sock:
            send_line(sock, line)
            with open_reader(sock) as reader:
                response = recv_line(reader)
        if response is None:
            raise ProtocolError(f"No response from {host}:{port} to {line.split(' ', 1)[0]}")
        return response

    def _index_request(self, line):
        return self._request(self.index_host, self.index_port, line)

    def search(self, filename):
        """Locations hosting filename, in registration order. Empty if none."""
        logger.debug(f"Searching index for {filename}")
        response = self._index_request(f"{messages.SEARCH} {filename}")
        if response == messages.NOT_FOUND:
            return []
        return messages.parse_found(response)

    def list_all(self):
        response = self._index_request(messages.LIST_ALL)
        return sorted(set(messages.parse_file_list(response)))

    def get_server(self, name):
        """(host, port) of a registered department server, or None."""
        response = self._index_request(f"{messages.GET_SERVER} {name}")
        if response == messages.SERVER_NOT_FOUND:
            return None
        parts = response.split()
        if len(parts) != 3 or parts[0] != messages.SERVER:
            raise ProtocolError(f"Unexpected GET_SERVER response: {response!r}")
        try:
            return parts[1], int(parts[2])
        except ValueError:
            raise ProtocolError(f"Unexpected GET_SERVER response: {response!r}")

    def check_file(self, location):
        """Size of the file on its department server, or None if it is gone."""
        response = self._request(location.host, location.port, f"{messages.GET} {location.filename}")
        if response == messages.FILE_NOT_FOUND:
            return None
        if response.startswith(messages.ERROR):
            raise RemoteError(response)
        return messages.parse_size(response)

    def list_server(self, host, port):
        response = self._request(host, port, messages.LIST)
        if response.startswith(messages.ERROR):
            raise RemoteError(response)
        return messages.parse_file_list(response)

    def ping(self, host, port):
        response = self._request(host, port, messages.TEST)
        if not response.startswith(messages.ALIVE):
            raise RemoteError(response)
        return response

    @staticmethod
    def choose_location(locations, chooser=None):
        """
        Pick one location. A single candidate is taken as is; several need
        chooser(locations) to return a 1-based ordinal.
        """
        if not locations:
            raise SelectionError("No locations to choose from")
        if len(locations) == 1:
            return locations[0]
        if chooser is None:
            raise SelectionError(f"File found on {len(locations)} servers, a choice is required")
        choice = chooser(locations)
        if not isinstance(choice, int) or not 1 <= choice <= len(locations):
            raise SelectionError(f"Invalid choice {choice!r}, expected 1-{len(locations)}")
        return locations[choice - 1]

    def download(self, filename, chooser=None, local_name=None, progress=None):
        locations = self.search(filename)
        if not locations:
            raise FileNotFoundOnNetwork(filename)
        location = self.choose_location(locations, chooser)
        return self.fetch(location, local_name=local_name, progress=progress)

    def fetch(self, location, local_name=None, progress=None):
        """
        DOWNLOAD location.filename from its department server into the
        download directory. Returns the path of the completed file.
        """
        local_name = os.path.basename(local_name or location.filename)
        if not local_name:
            raise SelectionError("Empty local filename")
        target = os.path.join(self.download_dir, local_name)
        partial = target + PARTIAL_SUFFIX

        with socket.create_connection((location.host, location.port), timeout=self.timeout) as sock:
            logger.debug(f"Requesting {location.filename} from {location.server} at {location.host}:{location.port}")
            send_line(sock, f"{messages.DOWNLOAD} {location.filename}")
            with open_reader(sock) as reader:
                header = recv_line(reader)
                if header is None:
                    raise ProtocolError(f"{location.server} closed the connection without a response")
                if header.startswith(messages.ERROR):
                    raise RemoteError(header)
                if not header.startswith(messages.SIZE + " "):
                    raise ProtocolError(f"Unexpected DOWNLOAD response: {header!r}")
                size = messages.parse_size(header)

                os.makedirs(self.download_dir, exist_ok=True)
                try:
                    with open(partial, "wb") as out:
                        received = copy_exact(reader, out, size, self.buffer_size, progress)
                except BaseException:
                    _remove_quietly(partial)
                    raise

        if received != size:
            _remove_quietly(partial)
            raise TransferError(size, received)
        os.replace(partial, target)
        logger.info(f"Downloaded {location.filename} from {location.server} to {target} ({size} bytes)")
        return target


def _remove_quietly(path):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
