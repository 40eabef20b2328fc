class FileShareError(Exception):
    """Base class for every error raised by the file sharing network."""


class ProtocolError(FileShareError):
    """A line on the wire did not match the expected message format."""


class RemoteError(FileShareError):
    """The remote side answered with an ERROR line."""

    def __init__(self, response):
        super().__init__(response)
        self.response = response


class TransferError(FileShareError):
    """A download ended before the announced number of bytes arrived."""

    def __init__(self, expected, received):
        super().__init__(f"Expected {expected} bytes, received {received}")
        self.expected = expected
        self.received = received


class FileNotFoundOnNetwork(FileShareError):
    """The index server has no location for the requested file."""


class SelectionError(FileShareError):
    """No usable location was chosen among several candidates."""


class ConfigError(FileShareError):
    pass
