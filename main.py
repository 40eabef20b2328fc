#main.py  ==  entry points for the three processes of the network
           #↳ index       keeps the filename -> server registry
           #↳ department  serves files from one directory
           #↳ client      searches the index and downloads
'''
├── main.py                     # Entry point
├── config.py                   # YAML settings with built-in defaults
├── index/
│   ├── registry.py             # filename -> locations, server -> address
│   └── index_server.py         # accept loop + worker pool
├── department/
│   ├── address.py              # own IPv4 address for registration
│   └── department_server.py    # registration + thread per connection
├── client/
│   ├── file_client.py          # search / list / download coordinator
│   └── menu.py                 # interactive menu
└── protocol/
    ├── messages.py             # command names, REGISTER / FOUND codecs
    ├── line_handler.py         # text lines + raw payload on one stream
    ├── handler.py              # request dispatch for both servers
    ├── file_handler.py         # GET / LIST / DOWNLOAD
    └── errors.py
'''
import sys

from config import load_config

INDEX_USAGE = "Usage: dfs-index"
DEPARTMENT_USAGE = """Usage: dfs-department <serverName> <port> <fileDirectory> <indexHost> <indexPort>
Example: dfs-department CS_Server 9091 cs_department localhost 9090
For network use, replace 'localhost' with the index server IP"""
CLIENT_USAGE = "Usage: dfs-client <indexServerHost> <indexServerPort>"


def _parse_port(value, usage):
    try:
        return int(value)
    except ValueError:
        print(f"Invalid port: {value}")
        print(usage)
        return None


def index_main(argv=None):
    from index.index_server import IndexServer
    from index.registry import Registry

    argv = sys.argv[1:] if argv is None else argv
    if argv:
        print(INDEX_USAGE)
        return 1
    config = load_config("config.yaml")
    registry = Registry(replace_on_reregister=config["replace_on_reregister"])
    server = IndexServer(port=config["index_port"], registry=registry, pool_size=config["index_pool_size"])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nIndex Server shutting down")
    return 0


def department_main(argv=None):
    from department.department_server import DepartmentServer

    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 5:
        print(DEPARTMENT_USAGE)
        return 1
    name, port, directory, index_host, index_port = argv
    port = _parse_port(port, DEPARTMENT_USAGE)
    index_port = _parse_port(index_port, DEPARTMENT_USAGE)
    if port is None or index_port is None:
        return 1
    config = load_config("config.yaml")

    print("=== Department Server Configuration ===")
    print(f"Server Name: {name}")
    print(f"Port: {port}")
    print(f"File Directory: {directory}")
    print(f"Index Server: {index_host}:{index_port}")
    print("=======================================")
    server = DepartmentServer(name, port, directory, index_host, index_port,
                              buffer_size=config["buffer_size"])
    try:
        server.start()
    except KeyboardInterrupt:
        print(f"\n{name} shutting down")
    return 0


def client_main(argv=None):
    from client.file_client import FileClient
    from client.menu import run_cli

    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 2:
        print(CLIENT_USAGE)
        return 1
    host = argv[0]
    port = _parse_port(argv[1], CLIENT_USAGE)
    if port is None:
        return 1
    config = load_config("config.yaml")
    client = FileClient(host, port,
                        download_dir=config["download_dir"],
                        buffer_size=config["buffer_size"],
                        timeout=config["socket_timeout"])
    run_cli(client)
    return 0


ROLES = {
    "index": index_main,
    "department": department_main,
    "client": client_main,
}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in ROLES:
        print("Usage: python main.py {index|department|client} [args...]")
        return 1
    return ROLES[argv[0]](argv[1:])


if __name__ == "__main__":
    sys.exit(main())
