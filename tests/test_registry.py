import threading

import pytest

from statustray.errors import RegistrationStringError, RegistryCorruptedError
from statustray.registry import ItemRegistry, RegisteredItem


def test_entries_keep_registration_order():
    registry = ItemRegistry()
    registry.add("org.example.A", ":1.1")
    registry.add("/StatusNotifierItem", ":1.2")
    registry.add("/org/ayatana/C", ":1.3")

    assert registry.registration_strings() == [
        ":1.1/StatusNotifierItem",
        ":1.2/StatusNotifierItem",
        ":1.3/org/ayatana/C",
    ]
    assert len(registry) == 3


def test_identity_is_sender_and_service():
    assert RegisteredItem("app1", ":1.23") == RegisteredItem("app1", ":1.23")
    assert RegisteredItem("app1", ":1.23") != RegisteredItem("app1", ":1.24")


def test_duplicates_are_kept_and_logged(caplog):
    registry = ItemRegistry()
    registry.add("app1", ":1.23")
    registry.add("app1", ":1.23")

    assert len(registry) == 2
    assert "registered more than once" in caplog.text


def test_rejected_registration_leaves_registry_unchanged():
    registry = ItemRegistry()
    registry.add("app1", ":1.23")

    with pytest.raises(RegistrationStringError):
        registry.add("bad/service", ":1.24")

    assert registry.registration_strings() == [":1.23/StatusNotifierItem"]
    registry.add("app2", ":1.45")
    assert len(registry) == 2


def test_snapshot_is_a_copy():
    registry = ItemRegistry()
    registry.add("app1", ":1.23")
    snapshot = registry.snapshot()
    registry.add("app2", ":1.45")

    assert len(snapshot) == 1
    assert len(registry.snapshot()) == 2


def test_failed_mutation_poisons_the_registry():
    class ExplodingList(list):
        def append(self, item):
            raise MemoryError("simulated failure mid-append")

    registry = ItemRegistry()
    registry._items = ExplodingList()

    with pytest.raises(MemoryError):
        registry.add("app1", ":1.23")

    with pytest.raises(RegistryCorruptedError):
        registry.snapshot()
    with pytest.raises(RegistryCorruptedError):
        len(registry)


def test_concurrent_registrations_are_all_recorded():
    registry = ItemRegistry()
    barrier = threading.Barrier(8)

    def register(worker):
        barrier.wait()
        for n in range(25):
            registry.add(f"org.example.Worker{worker}.Item{n}", f":1.{worker}")

    threads = [threading.Thread(target=register, args=(w,)) for w in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 200
    for worker in range(8):
        senders = [i.sender for i in registry.snapshot() if i.sender == f":1.{worker}"]
        assert len(senders) == 25
