import os
import logging

import yaml

from protocol.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULTS = {
    "index_host": "localhost",
    "index_port": 9090,
    "download_dir": "downloads",
    "buffer_size": 4096,
    "index_pool_size": 10,
    "replace_on_reregister": False,
    "socket_timeout": None,   # seconds, None blocks forever
}

INT_KEYS = ("index_port", "buffer_size", "index_pool_size")


def load_config(path="config.yaml"):
    """
    Load settings from a YAML file on top of DEFAULTS.
    A missing file is not an error, the defaults are used as they are.
    """
    config = dict(DEFAULTS)
    if not os.path.exists(path):
        logger.debug(f"No config file at {path}, using defaults")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}")

    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    config.update(loaded)

    for key in INT_KEYS:
        try:
            config[key] = int(config[key])
        except (TypeError, ValueError):
            raise ConfigError(f"Config value {key}={config[key]!r} is not an integer")
    if config["buffer_size"] <= 0:
        raise ConfigError("buffer_size must be positive")
    if config["socket_timeout"] is not None:
        try:
            config["socket_timeout"] = float(config["socket_timeout"])
        except (TypeError, ValueError):
            raise ConfigError(f"Config value socket_timeout={config['socket_timeout']!r} is not a number")
    config["replace_on_reregister"] = bool(config["replace_on_reregister"])
    logger.debug(f"Loaded config from {path}")
    return config
