from collections import namedtuple

from protocol.errors import ProtocolError

# Index server commands / responses
REGISTER = "REGISTER"
REGISTERED = "REGISTERED"
SEARCH = "SEARCH"
FOUND = "FOUND"
NOT_FOUND = "NOT_FOUND"
LIST_ALL = "LIST_ALL"
GET_SERVER = "GET_SERVER"
SERVER = "SERVER"
SERVER_NOT_FOUND = "SERVER_NOT_FOUND"

# Department server commands / responses
GET = "GET"
LIST = "LIST"
DOWNLOAD = "DOWNLOAD"
TEST = "TEST"
FILE_EXISTS = "FILE_EXISTS"
FILE_NOT_FOUND = "FILE_NOT_FOUND"
SIZE = "SIZE"
ALIVE = "ALIVE"
ERROR = "ERROR"
ERROR_FILE_NOT_FOUND = "ERROR_FILE_NOT_FOUND"

# Shared by both servers
FILES = "FILES"
NO_FILES = "NO_FILES"

FIELD_SEP = "|"
ITEM_SEP = ","

# A filename containing any of these cannot travel inside a REGISTER or FOUND line
RESERVED_CHARS = (FIELD_SEP, ITEM_SEP, "\r", "\n")

Location = namedtuple("Location", ["server", "host", "port", "filename"])


def split_request(line):
    """
    Split a request line into (command, argument) on the first space.
    The argument is passed through as sent, since stored filenames may
    begin or end with spaces; a blank argument counts as absent.
    """
    parts = line.rstrip("\r\n").split(" ", 1)
    command = parts[0]
    if len(parts) < 2 or not parts[1].strip():
        return command, None
    return command, parts[1]


def is_transferable_name(filename):
    return bool(filename) and not any(c in filename for c in RESERVED_CHARS)


def format_register(name, host, port, files):
    return f"{REGISTER} {name}{FIELD_SEP}{host}{FIELD_SEP}{port}{FIELD_SEP}{ITEM_SEP.join(files)}"


def parse_register(body):
    """
    Parse the body of a REGISTER request: name|host|port|f1,f2,...
    The file field may be missing or empty. Returns (name, host, port, files).
    """
    if not body:
        raise ProtocolError("REGISTER without body")
    fields = body.split(FIELD_SEP)
    if len(fields) < 3:
        raise ProtocolError(f"REGISTER needs name|host|port, got {body!r}")
    name, host = fields[0].strip(), fields[1].strip()
    if not name or not host:
        raise ProtocolError(f"REGISTER with empty name or host: {body!r}")
    try:
        port = int(fields[2])
    except ValueError:
        raise ProtocolError(f"REGISTER with invalid port: {fields[2]!r}")
    files = []
    if len(fields) > 3:
        files = [f.strip() for f in fields[3].split(ITEM_SEP) if f.strip()]
    return name, host, port, files


def format_location(location):
    return FIELD_SEP.join([location.server, location.host, str(location.port), location.filename])


def format_found(locations):
    return f"{FOUND} " + ITEM_SEP.join(format_location(loc) for loc in locations)


def parse_found(line):
    """Parse a FOUND response into a list of Location."""
    if not line.startswith(FOUND + " "):
        raise ProtocolError(f"Not a FOUND response: {line!r}")
    locations = []
    for entry in line[len(FOUND) + 1:].split(ITEM_SEP):
        fields = entry.split(FIELD_SEP)
        if len(fields) != 4:
            raise ProtocolError(f"Malformed location entry: {entry!r}")
        server, host, port, filename = fields
        try:
            locations.append(Location(server, host, int(port), filename))
        except ValueError:
            raise ProtocolError(f"Malformed port in location entry: {entry!r}")
    return locations


def parse_file_list(line):
    """Parse FILES a,b,c / NO_FILES into a list of names."""
    if line == NO_FILES:
        return []
    if not line.startswith(FILES + " "):
        raise ProtocolError(f"Not a file list response: {line!r}")
    return [f for f in line[len(FILES) + 1:].split(ITEM_SEP) if f]


def format_file_list(names):
    if not names:
        return NO_FILES
    return f"{FILES} " + ITEM_SEP.join(names)


def parse_size(line):
    """Parse `<KEYWORD> <n>` (SIZE / FILE_EXISTS) and return n."""
    parts = line.split()
    if len(parts) != 2:
        raise ProtocolError(f"Malformed size response: {line!r}")
    try:
        size = int(parts[1])
    except ValueError:
        raise ProtocolError(f"Malformed size response: {line!r}")
    if size < 0:
        raise ProtocolError(f"Negative size in response: {line!r}")
    return size
