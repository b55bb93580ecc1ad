import pytest

from servstats.lru_map import CapacityError, SetResult, SimpleLRUMap


def make_map(capacity=3, keys=("a", "b", "c")):
    m = SimpleLRUMap(capacity)
    for i, k in enumerate(keys):
        m.set(k, i)
    return m


def test_iteration_is_most_recent_first():
    m = make_map()
    assert list(m) == ["c", "b", "a"]
    assert m.items() == [("c", 2), ("b", 1), ("a", 0)]


def test_peek_does_not_move_to_front():
    m = make_map()
    assert m.peek("a") == 0
    m.set("d", 3)
    assert list(m) == ["d", "c", "b"]


def test_touch_moves_to_front():
    m = make_map()
    assert m.touch("a") == 0
    m.set("d", 3)
    assert list(m) == ["d", "a", "c"]


def test_getitem_does_not_move_to_front():
    m = make_map()
    assert m["a"] == 0
    assert list(m)[-1] == "a"


def test_missing_key_raises_key_error():
    m = make_map()
    with pytest.raises(KeyError):
        m.peek("zz")
    with pytest.raises(KeyError):
        m.touch("zz")
    with pytest.raises(KeyError):
        m["zz"]


def test_evict_callback_receives_pair():
    m = make_map()
    evicted = []
    m.set("d", 3, evict_callback=evicted.append)
    assert evicted == [("a", 0)]
    assert len(m) == m.capacity()


def test_zero_capacity():
    m = SimpleLRUMap()
    assert m.capacity() == 0
    assert m.try_set("a", 1) is SetResult.NO_CAPACITY
    with pytest.raises(CapacityError):
        m.set("a", 1)
    assert m.try_get_or_create("a", lambda k: k) is None
    with pytest.raises(CapacityError):
        m.get_or_create("a", lambda k: k)
    assert m.empty()


def test_try_set_existing_updates_in_place():
    m = make_map()
    assert m.try_set("a", 10, move_to_front=False) is SetResult.UPDATED
    assert list(m) == ["c", "b", "a"]
    assert m.peek("a") == 10
    assert m.size() == 3


def test_set_existing_moves_to_front_and_reports_not_created():
    m = make_map()
    assert m.set("a", 7) is False
    assert list(m)[0] == "a"
    assert m.set("x", 8) is True


def test_get_or_create_uses_factory_once():
    m = SimpleLRUMap(2)
    assert m.get_or_create("k", lambda key: key.upper()) == "K"

    def failing(_key):
        raise AssertionError("factory should not run")

    assert m.get_or_create("k", failing) == "K"


def test_get_or_create_without_factory_stores_none():
    m = SimpleLRUMap(2)
    m.get_or_create("k")
    assert m.find("k") == ("k", None)


def test_mutable_value_is_shared():
    m = SimpleLRUMap(2)
    bucket = m.get_or_create("k", lambda key: [])
    bucket.append(1)
    assert m.peek("k") == [1]


def test_erase():
    m = make_map()
    assert m.erase("b") is True
    assert m.erase("b") is False
    assert list(m) == ["c", "a"]


def test_set_capacity_shrinks_and_returns_old():
    m = make_map()
    evicted = []
    assert m.set_capacity(1, evicted.append) == 3
    assert evicted == [("a", 0), ("b", 1)]
    assert list(m) == ["c"]
    assert m.capacity() == 1


def test_find_and_stats():
    m = make_map()
    assert m.hit_ratio() == 0.0
    assert m.find("a") == ("a", 0)
    assert m.find("nope") is None
    assert m.hits() == 1
    assert m.misses() == 1
    assert m.hit_ratio() == 0.5


def test_find_move_to_front():
    m = make_map()
    m.find("a", True)
    assert list(m)[0] == "a"


def test_clear_keeps_or_resets_stats():
    m = make_map()
    m.find("a")
    m.clear(clear_stats=False)
    assert m.empty()
    assert m.hits() == 1
    m.clear()
    assert m.hits() == 0
    assert m.misses() == 0