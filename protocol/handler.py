import logging

from protocol import messages
from protocol.errors import ProtocolError
from protocol.file_handler import FileHandler
from protocol.line_handler import send_line, recv_line, open_reader

logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)
if not logger.hasHandlers():
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)
    logger.addHandler(ch)


def handle_index_request(sock, addr, registry):
    """
    Serve one request on an index server connection. Malformed requests get
    no reply; the caller closes the connection either way.
    """
    with open_reader(sock) as reader:
        request = recv_line(reader)
    if request is None:
        return {"status": "ignored", "reason": "Empty request"}
    logger.debug(f"Received request from {addr}: {request}")
    command, argument = messages.split_request(request)

    if command == messages.REGISTER:
        try:
            name, host, port, files = messages.parse_register(argument)
        except ProtocolError as e:
            return {"status": "ignored", "reason": str(e)}
        count = registry.register(name, host, port, files)
        send_line(sock, messages.REGISTERED)
        return {"status": "registered", "server": name, "files": count}

    elif command == messages.SEARCH:
        if argument is None:
            return {"status": "ignored", "reason": "SEARCH without filename"}
        resolved = registry.lookup(argument)
        if resolved:
            locations = [messages.Location(loc.server_name, info.host, info.port, loc.filename)
                         for loc, info in resolved]
            send_line(sock, messages.format_found(locations))
            return {"status": "found", "count": len(locations)}
        send_line(sock, messages.NOT_FOUND)
        return {"status": "not_found"}

    elif command == messages.LIST_ALL:
        send_line(sock, messages.format_file_list(registry.keys()))
        return {"status": "listed"}

    elif command == messages.GET_SERVER:
        if argument is None:
            return {"status": "ignored", "reason": "GET_SERVER without name"}
        # registered names are stored trimmed
        info = registry.get_server(argument.strip())
        if info is None:
            send_line(sock, messages.SERVER_NOT_FOUND)
            return {"status": "not_found"}
        send_line(sock, f"{messages.SERVER} {info.host} {info.port}")
        return {"status": "found"}

    return {"status": "ignored", "reason": f"Unsupported command: {command}"}


def handle_department_request(sock, addr, server):
    """Serve one GET / LIST / DOWNLOAD / TEST request for a department server."""
    with open_reader(sock) as reader:
        request = recv_line(reader)
    if request is None:
        return {"status": "ignored", "reason": "Empty request"}
    logger.debug(f"{server.name}: Request from {addr}: {request}")
    command, argument = messages.split_request(request)
    file_handler = FileHandler(server, addr)

    if command == messages.GET:
        if argument is None:
            send_line(sock, f"{messages.ERROR} Missing filename")
            return {"status": "error", "reason": "Missing filename"}
        return file_handler.handle_get(sock, argument)
    elif command == messages.LIST:
        return file_handler.handle_list(sock)
    elif command == messages.DOWNLOAD:
        if argument is None:
            send_line(sock, f"{messages.ERROR} Missing filename")
            return {"status": "error", "reason": "Missing filename"}
        return file_handler.handle_download(sock, argument)
    elif command == messages.TEST:
        send_line(sock, f"{messages.ALIVE} {server.name} is running on port {server.port}")
        return {"status": "alive"}

    send_line(sock, f"{messages.ERROR} Unknown command: {command}")
    return {"status": "error", "reason": f"Unknown command: {command}"}
