ENCODING = "utf-8"


def send_line(sock, line):
    """
    Send one text line over a socket, terminated by a newline.
    sendall() returns only once every byte is handed to the kernel, so
    anything written after it is ordered strictly behind the line.
    """
    sock.sendall((line + "\n").encode(ENCODING))


def open_reader(sock):
    """
    Buffered binary reader over the socket. Header lines and the payload that
    follows them must both be read through this same object, otherwise bytes
    buffered while looking for the newline would be lost.
    """
    return sock.makefile("rb")


def recv_line(reader):
    """
    Receive one newline-terminated line. Returns None when the peer closed the
    connection before sending anything.
    """
    raw = reader.readline()
    if not raw:
        return None
    return raw.decode(ENCODING).rstrip("\r\n")


def copy_exact(reader, out, size, chunk_size=4096, progress=None):
    """
    Copy exactly `size` bytes from reader to out and return the number of
    bytes copied. Stops early only if the peer closes the connection.
    """
    received = 0
    while received < size:
        chunk = reader.read(min(chunk_size, size - received))
        if not chunk:
            break
        out.write(chunk)
        received += len(chunk)
        if progress is not None:
            progress(received, size)
    return received


def send_stream(sock, source, chunk_size=4096):
    """
    Write a binary file object onto the socket chunk by chunk, yielding the
    running byte total after each chunk. Nothing is sent until iterated.
    """
    sent = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        sock.sendall(chunk)
        sent += len(chunk)
        yield sent
