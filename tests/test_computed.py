"""Tests for ComputedProperty and the computed decorator."""

import pytest

from propcascade import (
    ComputedProperty,
    ObservableObject,
    ReadOnlyPropertyError,
    add_observer,
    computed,
    meta_for,
    property_changes,
    remove_observer,
    watcher_count,
)


class Person(ObservableObject):
    first = "Ada"
    last = "Lovelace"

    def init(self):
        self._calls = 0

    @computed("first", "last")
    def full_name(self):
        self._calls += 1
        return f"{self.first} {self.last}"

    @full_name.setter
    def full_name(self, value):
        self.first, self.last = value.split(" ", 1)
        return value

    @computed("first", read_only=True)
    def initial(self):
        return self.first[0]

    @computed("{first,last}")
    def length(self):
        return len(self.first) + len(self.last)


class Badge(ObservableObject):
    name = "Ada"

    @computed("name")
    def label(self):
        return f"[{self.name}]"


class TestDeclaration:
    def test_class_access_returns_descriptor(self):
        assert isinstance(Person.full_name, ComputedProperty)
        assert Person.full_name.name == "full_name"
        assert Person.full_name.dependent_keys == ("first", "last")

    def test_brace_expanded_dependent_keys(self):
        assert Person.length.dependent_keys == ("first", "last")

    def test_bare_decorator(self):
        class Plain(ObservableObject):
            @computed
            def answer(self):
                return 42

        assert Plain().answer == 42
        assert Plain.answer.dependent_keys == ()

    def test_repr(self):
        assert "full_name" in repr(Person.full_name)


class TestCaching:
    def test_unwatched_recomputes_on_every_read(self):
        p = Person()
        assert p.full_name == "Ada Lovelace"
        assert p.full_name == "Ada Lovelace"
        assert p._calls == 2

    def test_watched_value_is_cached(self, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        p.full_name
        p.full_name
        assert p._calls == 1

    def test_dependency_change_invalidates_and_notifies(self, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        assert p.full_name == "Ada Lovelace"

        p.first = "Grace"
        assert recorder.log == ["full_name"]
        assert p.full_name == "Grace Lovelace"
        assert p._calls == 2

    def test_watching_registers_and_unwatching_releases_dependents(self, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        meta = meta_for(p)
        assert meta.has_deps("first")
        assert watcher_count(p, "last") == 1

        remove_observer(p, "full_name", recorder)
        assert not meta.has_deps("first")
        assert watcher_count(p, "last") == 0

    def test_batched_dependency_changes_notify_once(self, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        with property_changes():
            p.first = "Grace"
            p.last = "Hopper"
        assert recorder.log == ["full_name"]
        assert p.full_name == "Grace Hopper"


class TestSetter:
    def test_setter_writes_dependencies_and_notifies_once(self, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        p.full_name

        p.full_name = "Grace Hopper"
        assert (p.first, p.last) == ("Grace", "Hopper")
        assert recorder.log == ["full_name"]
        # the setter's return value is cached; no recompute needed
        assert p.full_name == "Grace Hopper"
        assert p._calls == 1

    def test_setter_suspends_only_during_the_write(self, ctx, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        p.full_name = "Grace Hopper"
        assert not ctx.is_suspended(p, "full_name")

        p.last = "Brewster"
        assert recorder.log == ["full_name", "full_name"]

    def test_same_value_does_not_notify(self, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        value = "Grace Hopper"
        p.full_name = value
        p.full_name = value
        assert recorder.log == ["full_name"]


class TestOverride:
    def test_plain_assignment_overrides(self, recorder):
        b = Badge()
        add_observer(b, "label", recorder)
        assert b.label == "[Ada]"

        b.label = "custom"
        assert b.label == "custom"
        assert recorder.log == ["label"]

    def test_override_drops_dependent_keys(self, recorder):
        b = Badge()
        add_observer(b, "label", recorder)
        b.label = "custom"
        assert watcher_count(b, "name") == 0

        b.name = "Grace"
        assert recorder.log == ["label"]
        assert b.label == "custom"


class TestReadOnly:
    def test_assignment_raises(self):
        p = Person()
        with pytest.raises(ReadOnlyPropertyError):
            p.initial = "Z"
        assert p.initial == "A"

    def test_read_only_error_is_attribute_error(self):
        p = Person()
        with pytest.raises(AttributeError):
            p.initial = "Z"

    def test_cannot_add_setter(self):
        with pytest.raises(TypeError):
            @computed("x", read_only=True)
            def locked(self):
                return 1

            locked.setter(lambda self, value: value)


class TestTrackedMode:
    def test_cache_follows_dependency_revisions(self, tracked_ctx):
        p = Person()
        assert p.full_name == "Ada Lovelace"
        assert p.full_name == "Ada Lovelace"
        assert p._calls == 1

        p.first = "Grace"
        assert p.full_name == "Grace Lovelace"
        assert p._calls == 2

    def test_observer_fires_when_dependency_moves(self, tracked_ctx, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        p.last = "Byron"
        assert recorder.log == ["full_name"]

    def test_observer_fires_once_per_transaction(self, tracked_ctx, recorder):
        p = Person()
        add_observer(p, "full_name", recorder)
        with property_changes():
            p.first = "Grace"
            p.last = "Hopper"
            assert recorder.log == []
        assert recorder.log == ["full_name"]
