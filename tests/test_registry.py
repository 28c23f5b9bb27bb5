"""Tests for the shape registry."""

import pytest

from capadapt.adapter import CapabilityAdapter
from capadapt.core.errors import GateMisuseError, UnexpectedForeignShape
from capadapt.models.capability import Shape
from capadapt.registry import ShapeRegistry, get_registry


class TestShapeRegistry:
    """Tests for registering and checking shapes."""

    def setup_method(self):
        self.registry = ShapeRegistry()
        self.registry.register(Shape(name="Duck", type_name="Duck"))

    def test_default_registry_knows_duck(self):
        assert "Duck" in get_registry().list_shapes()

    def test_matches_under_gate(self, runtime, gate):
        duck = runtime.construct("Duck")
        parrot = runtime.construct("Parrot")

        with gate.hold():
            assert self.registry.matches(duck, "Duck")
            assert not self.registry.matches(parrot, "Duck")

    def test_matches_requires_gate(self, runtime):
        """The predicate itself does not acquire the gate."""
        duck = runtime.construct("Duck")
        with pytest.raises(GateMisuseError):
            self.registry.matches(duck, "Duck")

    def test_check_acquires_gate(self, runtime, gate):
        duck = runtime.construct("Duck")
        before = gate.stats().acquisitions

        shape = self.registry.check(duck, "Duck")

        assert shape.type_name == "Duck"
        assert gate.stats().acquisitions == before + 1

    def test_unknown_shape(self, runtime):
        duck = runtime.construct("Duck")
        with pytest.raises(UnexpectedForeignShape):
            self.registry.check(duck, "Swan")

    def test_extra_required_methods(self, runtime):
        """A shape may demand more methods than the type provides."""
        self.registry.register(Shape(name="LoudDuck", type_name="Duck", methods=["speak", "shout"]))
        duck = runtime.construct("Duck")

        with pytest.raises(UnexpectedForeignShape) as exc_info:
            self.registry.check(duck, "LoudDuck")
        assert exc_info.value.missing_methods == ["shout"]

    def test_custom_shape_through_adapter(self, runtime, sink):
        """Adapters accept a caller-supplied registry."""
        self.registry.register(Shape(name="Parrot", type_name="Parrot"))

        adapter = CapabilityAdapter.from_foreign_checked(
            runtime.construct("Parrot"), shape="Parrot", registry=self.registry, owned=True
        )
        adapter.speak()
        assert sink.lines() == ["Squawk, Python!"]

    def test_unregister(self):
        self.registry.unregister("Duck")
        self.registry.unregister("Duck")
        assert self.registry.list_shapes() == []
