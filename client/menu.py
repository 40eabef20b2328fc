import logging

from protocol.errors import FileShareError

logger = logging.getLogger(__name__)

MENU = """
=== Distributed File System Client ===
1. Search for a file
2. List all available files
3. Download a file
4. Test a department server
5. Exit"""


def print_progress(received, total):
    if total > 0:
        print(f"\rProgress: {received * 100 // total}%", end="", flush=True)


def prompt_choice(input_fn):
    def chooser(locations):
        print("File found on multiple servers. Choose one:")
        for i, loc in enumerate(locations, 1):
            print(f"{i}. Server: {loc.server} ({loc.host}:{loc.port})")
        answer = input_fn(f"Choose server (1-{len(locations)}): ").strip()
        try:
            return int(answer)
        except ValueError:
            return None
    return chooser


def run_cli(client, input_fn=input):
    while True:
        print(MENU)
        try:
            choice = input_fn("Choose option: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nInterrupted. Exiting")
            break

        try:
            if choice == "1":
                filename = input_fn("Enter filename to search: ").strip()
                locations = client.search(filename)
                if not locations:
                    print("[✗] File not found in the system")
                    continue
                print("File found at:")
                for i, loc in enumerate(locations, 1):
                    print(f"{i}. Server: {loc.server}, File: {loc.filename}")
            elif choice == "2":
                files = client.list_all()
                if not files:
                    print("No files available")
                    continue
                print("Available files:")
                for name in files:
                    print(f"- {name}")
            elif choice == "3":
                filename = input_fn("Enter filename to download: ").strip()
                locations = client.search(filename)
                if not locations:
                    print("[✗] File not found")
                    continue
                location = client.choose_location(locations, prompt_choice(input_fn))
                local_name = input_fn("Enter local filename to save as (or press Enter for same name): ").strip()
                print(f"Downloading {location.filename} from {location.server}...")
                path = client.fetch(location, local_name=local_name or None, progress=print_progress)
                print(f"\n[✓] Download completed: {path}")
            elif choice == "4":
                name = input_fn("Enter department server name: ").strip()
                address = client.get_server(name)
                if address is None:
                    print(f"[✗] Server '{name}' is not registered")
                    continue
                print(f"[✓] {client.ping(*address)}")
            elif choice == "5":
                print("Exiting...")
                break
            else:
                print("Invalid option")
        except FileShareError as e:
            logger.error(f"Request failed: {e}")
            print(f"[✗] Error: {e}")
        except OSError as e:
            logger.error(f"Connection error: {e}")
            print(f"[!] Error connecting to server: {e}")
        except KeyboardInterrupt:
            print("\nInterrupted. Exiting")
            break
