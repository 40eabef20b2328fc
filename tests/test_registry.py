import threading

from index.registry import FileLocation, Registry, ServerInfo


def test_lookup_is_case_insensitive():
    registry = Registry()
    registry.register("A", "10.0.0.1", 9091, ["Foo.txt"])
    assert registry.lookup("Foo.TXT") == registry.lookup("foo.txt")
    [(loc, info)] = registry.lookup("FOO.TXT")
    # stored name keeps its original case
    assert loc == FileLocation("A", "Foo.txt")
    assert info == ServerInfo("10.0.0.1", 9091)


def test_register_then_lookup():
    registry = Registry()
    assert registry.register("A", "10.0.0.1", 9091, ["x.txt", "y.txt"]) == 2
    assert registry.lookup("x.txt") == [(FileLocation("A", "x.txt"), ServerInfo("10.0.0.1", 9091))]


def test_same_file_on_two_servers_keeps_registration_order():
    registry = Registry()
    registry.register("A", "10.0.0.1", 9091, ["shared.pdf"])
    registry.register("B", "10.0.0.2", 9092, ["Shared.pdf"])
    servers = [loc.server_name for loc, _ in registry.lookup("shared.pdf")]
    assert servers == ["A", "B"]


def test_unknown_file_and_empty_registry():
    registry = Registry()
    assert registry.lookup("nope.dat") == []
    assert registry.keys() == []


def test_empty_file_list_only_records_server():
    registry = Registry()
    assert registry.register("A", "10.0.0.1", 9091, []) == 0
    assert registry.get_server("A") == ServerInfo("10.0.0.1", 9091)
    assert registry.keys() == []


def test_blank_names_are_not_indexed():
    registry = Registry()
    assert registry.register("A", "h", 1, ["  a.txt ", "", "   "]) == 1
    assert registry.keys() == ["a.txt"]
    [(loc, _)] = registry.lookup("a.txt")
    assert loc.filename == "a.txt"


def test_reregistration_is_additive_by_default():
    registry = Registry()
    registry.register("A", "10.0.0.1", 9091, ["x.txt"])
    registry.register("A", "10.0.0.9", 9099, ["x.txt"])
    resolved = registry.lookup("x.txt")
    assert len(resolved) == 2
    # last address wins for both entries
    assert {info for _, info in resolved} == {ServerInfo("10.0.0.9", 9099)}


def test_reregistration_can_replace_entries():
    registry = Registry(replace_on_reregister=True)
    registry.register("A", "10.0.0.1", 9091, ["x.txt", "old.txt"])
    registry.register("B", "10.0.0.2", 9092, ["x.txt"])
    registry.register("A", "10.0.0.1", 9091, ["x.txt"])
    assert [loc.server_name for loc, _ in registry.lookup("x.txt")] == ["B", "A"]
    assert registry.lookup("old.txt") == []
    assert "old.txt" not in registry.keys()


def test_location_without_server_address_is_skipped():
    registry = Registry()
    # only reachable by bypassing register(), which records the address first
    registry._file_index["x.txt"] = [FileLocation("ghost", "x.txt")]
    registry.register("A", "10.0.0.1", 9091, ["x.txt"])
    assert [loc.server_name for loc, _ in registry.lookup("x.txt")] == ["A"]


def test_get_server_unknown():
    assert Registry().get_server("nobody") is None


def test_concurrent_registrations_lose_nothing():
    registry = Registry()
    count = 50
    barrier = threading.Barrier(count)

    def register(i):
        barrier.wait()
        registry.register(f"S{i}", "10.0.0.1", 9000 + i, [f"file{i}_{j}.txt" for j in range(20)])

    threads = [threading.Thread(target=register, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry.keys()) == count * 20
    for i in range(count):
        for j in range(20):
            [(loc, info)] = registry.lookup(f"file{i}_{j}.txt")
            assert loc.server_name == f"S{i}"
            assert info.port == 9000 + i
