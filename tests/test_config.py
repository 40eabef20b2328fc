import pytest

from config import DEFAULTS, load_config
from protocol.errors import ConfigError


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config == DEFAULTS
    assert config["index_host"] == "localhost"
    assert config["index_port"] == 9090
    assert config["download_dir"] == "downloads"
    assert config["buffer_size"] == 4096


def test_file_overrides_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("index_host: 10.0.0.7\nindex_port: '9191'\nreplace_on_reregister: true\nsocket_timeout: 3\n")
    config = load_config(str(path))
    assert config["index_host"] == "10.0.0.7"
    assert config["index_port"] == 9191
    assert config["replace_on_reregister"] is True
    assert config["socket_timeout"] == 3.0
    assert config["buffer_size"] == 4096


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(str(path)) == DEFAULTS


@pytest.mark.parametrize("content", ["- a\n- b\n", "index_port: abc\n", "buffer_size: 0\n", "key: [unclosed\n"])
def test_bad_config_raises(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(str(path))
