import threading
import time

from servstats.callback_values_map import (
    CallbackEntry,
    CallbackValuesMap,
    DynamicCounters,
    DynamicStrings,
)


def echo(value):
    return lambda: value


def test_basic():
    values_map = CallbackValuesMap()
    assert not values_map.contains("key1")
    assert not values_map.contains("key2")
    assert values_map.get_value("key1") is None
    assert values_map.get_value("key2") is None
    assert values_map.get_values() == {}

    values_map.register_callback("key1", echo(123))
    values_map.register_callback("key2", echo(321))
    assert values_map.contains("key1")
    assert values_map.contains("key2")
    assert values_map.get_value("key1") == 123
    assert values_map.get_value("key2") == 321
    values = values_map.get_values()
    assert len(values) == 2
    assert values["key1"] == 123
    assert values["key2"] == 321

    assert values_map.unregister_callback("key1")
    assert not values_map.contains("key1")
    assert values_map.get_value("key1") is None
    assert values_map.get_values() == {"key2": 321}
    assert not values_map.unregister_callback("key1")


def test_possible_deadlock():
    gate = threading.Lock()
    gate.acquire()
    values_map = CallbackValuesMap()

    def blocking():
        with gate:
            return 0

    values_map.register_callback("a", blocking)
    results = {}
    bg = threading.Thread(target=lambda: results.update(values_map.get_values()))
    bg.start()
    time.sleep(0.2)
    values_map.register_callback("b", echo(1))
    gate.release()
    bg.join(timeout=5)
    assert not bg.is_alive()
    assert results["a"] == 0


def test_get_callback():
    values_map = CallbackValuesMap()
    assert values_map.get_callback("key1") is None
    assert values_map.get_callback("key2") is None
    values_map.register_callback("key1", echo(123))
    values_map.register_callback("key2", echo(321))
    assert values_map.get_callback("key1").get_value() == 123
    assert values_map.get_callback("key2").get_value() == 321


def test_unregistered_entry_yields_nothing():
    values_map = CallbackValuesMap()
    values_map.register_callback("key1", echo(123))
    entry = values_map.get_callback("key1")
    values_map.unregister_callback("key1")
    assert entry.get_value() is None


def test_entry_clear():
    entry = CallbackEntry(echo(5))
    assert entry.get_value() == 5
    entry.clear()
    assert entry.get_value() is None


def test_register_replaces():
    values_map = CallbackValuesMap()
    values_map.register_callback("k", echo(1))
    values_map.register_callback("k", echo(2))
    assert values_map.get_value("k") == 2
    assert len(values_map) == 1


def test_keys_and_clear():
    values_map = CallbackValuesMap()
    values_map.register_callback("key2", echo(321))
    values_map.register_callback("key1", echo(123))
    assert values_map.get_keys() == ["key1", "key2"]
    assert values_map.get_num_keys() == 2
    assert "key1" in values_map
    values_map.clear()
    assert values_map.get_keys() == []
    assert "key1" not in values_map


def test_regex_keys_follow_registration():
    values_map = CallbackValuesMap()
    values_map.register_callback("counterA", echo(1))
    values_map.register_callback("counterB", echo(0))
    values_map.register_callback("other", echo(0))
    assert values_map.get_regex_keys("counter.*") == ["counterA", "counterB"]
    assert values_map.get_regex_keys("counter.*") == ["counterA", "counterB"]
    values_map.unregister_callback("counterA")
    assert values_map.get_regex_keys("counter.*") == ["counterB"]


def test_dynamic_counters_aliases():
    counters = DynamicCounters()
    counters.register_callback("wiggle", echo(6))
    assert counters.get_counters() == {"wiggle": 6}
    assert counters.get_counter("wiggle") == 6
    assert counters.get_counter("strike") is None


def test_dynamic_strings():
    strings = DynamicStrings()
    strings.register_callback("wiggle", echo("6"))
    assert strings.get_values() == {"wiggle": "6"}