import pytest

from protocol import messages
from protocol.errors import ProtocolError
from protocol.messages import Location


def test_parse_register():
    assert messages.parse_register("A|10.0.0.1|9091|x.txt, y.txt") == ("A", "10.0.0.1", 9091, ["x.txt", "y.txt"])


@pytest.mark.parametrize("body", ["A|10.0.0.1|9091|", "A|10.0.0.1|9091"])
def test_parse_register_without_files(body):
    assert messages.parse_register(body) == ("A", "10.0.0.1", 9091, [])


@pytest.mark.parametrize("body", [None, "", "A|10.0.0.1", "A|10.0.0.1|port|x", "|10.0.0.1|1|x"])
def test_parse_register_rejects_malformed(body):
    with pytest.raises(ProtocolError):
        messages.parse_register(body)


def test_format_register_with_no_files_keeps_empty_field():
    assert messages.format_register("A", "10.0.0.1", 9091, []) == "REGISTER A|10.0.0.1|9091|"


def test_found_line_format():
    line = messages.format_found([Location("A", "10.0.0.1", 9091, "x.txt"),
                                  Location("B", "10.0.0.2", 9092, "X.txt")])
    assert line == "FOUND A|10.0.0.1|9091|x.txt,B|10.0.0.2|9092|X.txt"
    assert messages.parse_found(line)[1] == Location("B", "10.0.0.2", 9092, "X.txt")


@pytest.mark.parametrize("line", ["NOT_FOUND", "FOUND A|h|1", "FOUND A|h|p|x"])
def test_parse_found_rejects_malformed(line):
    with pytest.raises(ProtocolError):
        messages.parse_found(line)


def test_split_request():
    assert messages.split_request("DOWNLOAD my file.txt") == ("DOWNLOAD", "my file.txt")
    assert messages.split_request("LIST") == ("LIST", None)
    assert messages.split_request("GET ") == ("GET", None)
    assert messages.split_request("GET    ") == ("GET", None)


def test_split_request_keeps_argument_spaces():
    assert messages.split_request("GET  notes.txt \r\n") == ("GET", " notes.txt ")
    assert messages.split_request("DOWNLOAD a  b.txt") == ("DOWNLOAD", "a  b.txt")


def test_file_list():
    assert messages.parse_file_list("NO_FILES") == []
    assert messages.parse_file_list("FILES a,b") == ["a", "b"]
    assert messages.format_file_list([]) == "NO_FILES"


def test_parse_size():
    assert messages.parse_size("SIZE 42") == 42
    with pytest.raises(ProtocolError):
        messages.parse_size("SIZE -1")
    with pytest.raises(ProtocolError):
        messages.parse_size("SIZE")


def test_transferable_names():
    assert messages.is_transferable_name("report.pdf")
    assert not messages.is_transferable_name("a,b.txt")
    assert not messages.is_transferable_name("a|b.txt")
    assert not messages.is_transferable_name("")
