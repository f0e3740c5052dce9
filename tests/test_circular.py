import pytest

from lazybind import CircularReferenceError, Container, NotFoundError, Reference


class A:
    def __init__(self, b: "B"):
        self.b = b


class B:
    def __init__(self, a: A):
        self.a = a


def test_get_detects_cycle_between_definitions():
    c = Container(
        {
            "a": {"class": A, "arguments": {"b": Reference("b")}},
            "b": {"class": B, "arguments": {"a": Reference("a")}},
        }
    )

    with pytest.raises(CircularReferenceError) as ctx:
        c.get("a")

    assert ctx.value.id == "a"
    assert ctx.value.chain == ("a", "b", "a")
    assert "a -> b -> a" in str(ctx.value)


def test_get_detects_cycle_between_autowired_classes():
    c = Container()

    with pytest.raises(CircularReferenceError) as ctx:
        c.get(A)

    assert ctx.value.chain == (c.get_id(A), c.get_id(B), c.get_id(A))


def test_get_detects_self_referencing_alias():
    c = Container({"loop": "loop"})

    with pytest.raises(CircularReferenceError):
        c.get("loop")


def test_get_detects_cycle_through_factories():
    c = Container(
        {
            "a": lambda c: c.get("b"),
            "b": lambda c: c.get("c"),
            "c": lambda c: c.get("a"),
        }
    )

    with pytest.raises(CircularReferenceError) as ctx:
        c.get("b")

    assert ctx.value.chain == ("b", "c", "a", "b")


def test_container_is_usable_after_circular_reference():
    c = Container(
        {
            "a": {"class": A, "arguments": {"b": Reference("b")}},
            "b": {"class": B, "arguments": {"a": Reference("a")}},
        }
    )
    with pytest.raises(CircularReferenceError):
        c.get("a")

    c.set("b", {"class": B, "arguments": {"a": None}})

    a = c.get("a")
    assert a.b is c.get("b")
    assert a.b.a is None


def test_building_stack_is_released_after_failure():
    calls = []

    def flaky(c):
        calls.append(1)
        if len(calls) == 1:
            return c.get("missing")
        return "ok"

    c = Container({"flaky": flaky})

    with pytest.raises(NotFoundError):
        c.get("flaky")

    assert not c.has_instance("flaky")
    assert c.get("flaky") == "ok"


def test_repeated_dependency_in_graph_is_not_circular():
    class Engine: ...

    class Wheels:
        def __init__(self, engine: Engine):
            self.engine = engine

    class Car:
        def __init__(self, engine: Engine, wheels: Wheels):
            self.engine = engine
            self.wheels = wheels

    c = Container()
    car = c.get(Car)

    assert car.engine is car.wheels.engine


def test_build_after_get_is_not_circular():
    c = Container({"a": lambda c: object()})

    first = c.get("a")
    built = c.build("a")

    assert built is not first
    assert c.get("a") is first


def test_partial_results_stay_cached_after_failure():
    c = Container(
        {
            "engine": lambda c: object(),
            "car": lambda c: (c.get("engine"), c.get("missing")),
        }
    )

    with pytest.raises(NotFoundError):
        c.get("car")

    assert c.has_instance("engine")
    assert not c.has_instance("car")
