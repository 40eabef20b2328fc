import os
import logging

from protocol import messages
from protocol.line_handler import send_line, send_stream

logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)
if not logger.hasHandlers():
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)
    logger.addHandler(ch)

# Files above this size get progress lines while being sent
PROGRESS_THRESHOLD = 100_000


def safe_path_join(base_dir, filename):
    """
    Resolve filename inside base_dir. Returns None if it would point
    outside the directory.
    """
    base = os.path.abspath(base_dir)
    candidate = os.path.abspath(os.path.join(base, filename))
    if os.path.dirname(candidate) != base:
        return None
    return candidate


def list_shared_files(directory):
    """Names of the regular files directly under directory, sorted."""
    if not os.path.isdir(directory):
        return []
    return sorted(name for name in os.listdir(directory)
                  if os.path.isfile(os.path.join(directory, name)))


class FileHandler:
    def __init__(self, server, addr):
        self.server = server
        self.addr = addr

    def _resolve(self, filename):
        path = safe_path_join(self.server.directory, filename)
        if path is None or not os.path.isfile(path):
            return None
        return path

    def handle_get(self, sock, filename):
        file_path = self._resolve(filename)
        logger.debug(f"{self.server.name}: Checking file: {filename}")
        if file_path is None:
            send_line(sock, messages.FILE_NOT_FOUND)
            logger.debug(f"{self.server.name}: File not found: {filename}")
            return {"status": "not_found"}
        try:
            size = os.path.getsize(file_path)
        except OSError as e:
            send_line(sock, f"{messages.ERROR} Cannot read file: {e}")
            return {"status": "error", "reason": str(e)}
        send_line(sock, f"{messages.FILE_EXISTS} {size}")
        logger.debug(f"{self.server.name}: File found: {filename} ({size} bytes)")
        return {"status": "exists", "size": size}

    def handle_list(self, sock):
        names = list_shared_files(self.server.directory)
        logger.debug(f"{self.server.name}: Listing {len(names)} files")
        send_line(sock, messages.format_file_list(names))
        return {"status": "listed", "count": len(names)}

    def handle_download(self, sock, filename):
        logger.info(f"{self.server.name}: Download requested for: {filename} by {self.addr}")
        file_path = self._resolve(filename)
        if file_path is None:
            send_line(sock, messages.ERROR_FILE_NOT_FOUND)
            logger.info(f"{self.server.name}: File not found for download: {filename}")
            return {"status": "not_found"}

        try:
            f = open(file_path, "rb")
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            logger.error(f"{self.server.name}: Cannot open {filename}: {e}")
            send_line(sock, f"{messages.ERROR} Download failed: {e}")
            return {"status": "error", "reason": str(e)}

        with f:
            # header goes out completely before the first payload byte
            send_line(sock, f"{messages.SIZE} {size}")
            logger.debug(f"{self.server.name}: Sending file: {filename} ({size} bytes)")
            sent = 0
            last_step = 0
            for sent in send_stream(sock, f, self.server.buffer_size):
                if size > PROGRESS_THRESHOLD:
                    step = sent * 10 // size
                    if step > last_step:
                        last_step = step
                        logger.debug(f"{self.server.name}: Sending {filename}: {step * 10}%")

        if sent != size:
            # file changed size while being sent
            logger.warning(f"{self.server.name}: Sent {sent} bytes of {filename}, announced {size}")
            return {"status": "error", "reason": f"Sent {sent} of {size} bytes"}
        logger.info(f"{self.server.name}: File sent successfully: {filename}")
        return {"status": "sent", "size": size}
