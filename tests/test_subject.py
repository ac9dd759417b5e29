"""Tests for ObservableObject and the get/set accessors."""

import gc

import pytest

from propcascade import (
    ObservableObject,
    add_observer,
    computed,
    get,
    get_path,
    meta_for,
    peek_meta,
    set_property,
)
from propcascade import _anchor
from propcascade.descriptors import Descriptor

from conftest import Thing


class Account(ObservableObject):
    owner = None
    balance = 0

    def init(self):
        self._changes = []

    def property_did_change(self, key):
        self._changes.append(key)

    @computed("balance")
    def overdrawn(self):
        return self.balance < 0


class TestConstruction:
    def test_props_are_assigned(self):
        account = Account(balance=10)
        assert account.balance == 10

    def test_construction_does_not_notify(self):
        account = Account(balance=10, owner="Ada")
        assert account._changes == []
        assert meta_for(account).revision("balance") == 0
        assert not meta_for(account).is_initializing()

    def test_changes_after_construction_notify(self):
        account = Account(balance=10)
        account.balance = 5
        assert account._changes == ["balance"]

    def test_same_value_does_not_notify(self):
        account = Account(balance=10)
        account.balance = 10
        assert account._changes == []

    def test_private_attributes_bypass_the_engine(self):
        account = Account()
        account._scratch = 1
        assert account._changes == []


class TestApi:
    def test_get_and_set(self, recorder):
        account = Account()
        account.add_observer("balance", recorder)
        assert account.set("balance", 7) == 7
        assert account.get("balance") == 7
        assert recorder.log == ["balance"]

    def test_set_properties_batches(self, recorder):
        account = Account()
        account.add_observer("overdrawn", recorder)
        account.set_properties({"balance": -5, "owner": "Ada"})
        assert recorder.log == ["overdrawn"]
        assert account.overdrawn is True

    def test_remove_observer(self, recorder):
        account = Account()
        account.add_observer("balance", recorder)
        account.remove_observer("balance", recorder)
        account.balance = 3
        assert recorder.log == []

    def test_notify_property_change_method(self, recorder):
        account = Account()
        account.add_observer("balance", recorder)
        account.notify_property_change("balance")
        assert recorder.log == ["balance"]

    def test_observer_by_method_name(self):
        class Auditor:
            def __init__(self):
                self.seen = []

            def on_change(self, obj, key):
                self.seen.append((obj, key))

        account = Account()
        auditor = Auditor()
        account.add_observer("balance", auditor, "on_change")
        account.balance = 1
        assert auditor.seen == [(account, "balance")]


class TestDestroy:
    def test_destroy_stops_propagation(self, recorder):
        account = Account()
        account.add_observer("balance", recorder)
        account.destroy()

        assert account.is_destroying
        assert account.is_destroyed
        account.notify_property_change("balance")
        assert recorder.log == []

    def test_set_after_destroy_raises(self):
        account = Account()
        account.destroy()
        with pytest.raises(AttributeError):
            account.balance = 1

    def test_destroy_is_idempotent(self):
        calls = []

        class Tracked(ObservableObject):
            def will_destroy(self):
                calls.append("will_destroy")

        obj = Tracked()
        obj.destroy()
        obj.destroy()
        assert calls == ["will_destroy"]

    def test_fresh_object_is_not_destroying(self):
        account = Account()
        assert not account.is_destroying
        assert not account.is_destroyed


class TestAccessors:
    def test_get_missing_key_is_none(self):
        assert get(Thing(), "nope") is None

    def test_get_path(self):
        root, child = Thing(), Thing()
        child.name = "Ada"
        root.child = child
        assert get_path(root, "child.name") == "Ada"
        assert get(root, "child.name") == "Ada"
        root.child = None
        assert get_path(root, "child.name") is None

    def test_set_property_on_plain_object(self, recorder):
        thing = Thing()
        add_observer(thing, "color", recorder)
        set_property(thing, "color", "red")
        assert thing.color == "red"
        assert recorder.log == ["color"]

    def test_set_property_through_a_path(self, recorder):
        root, child = Thing(), Thing()
        root.child = child
        add_observer(root, "child.name", recorder)
        set_property(root, "child.name", "Grace")
        assert child.name == "Grace"
        assert recorder.log == ["child.name"]

    def test_set_property_through_missing_link_raises(self):
        root = Thing()
        root.child = None
        with pytest.raises(AttributeError):
            set_property(root, "child.name", "Grace")

    def test_set_property_without_meta_creates_none(self):
        thing = Thing()
        set_property(thing, "color", "red")
        assert peek_meta(thing) is None

    def test_getter_errors_propagate(self):
        class Broken(ObservableObject):
            @computed
            def label(self):
                return self.missing_attribute

        with pytest.raises(AttributeError, match="missing_attribute"):
            get(Broken(), "label")

    def test_set_property_through_plain_descriptor_notifies(self, recorder):
        changed = []

        class Hooked(Descriptor):
            def did_change(self, obj, key):
                changed.append(key)

        class Gauge:
            value = Hooked()

        gauge = Gauge()
        add_observer(gauge, "value", recorder)
        set_property(gauge, "value", 5)

        assert gauge.value == 5
        assert changed == ["value"]
        assert recorder.log == ["value"]


class Watcher(ObservableObject):
    name = None

    def init(self):
        self._heard = []
        self.add_observer("name", self, "on_name")
        self.add_observer("name", self.on_name)

    def on_name(self, obj, key):
        self._heard.append(key)


class TestRelease:
    def _baseline(self):
        gc.collect()
        return len(_anchor.metas)

    def test_self_observer_still_fires(self):
        watcher = Watcher()
        watcher.name = "Ada"
        assert watcher._heard == ["name", "name"]

    def test_self_observing_objects_are_collected(self):
        baseline = self._baseline()
        watchers = [Watcher() for _ in range(100)]
        for watcher in watchers:
            watcher.name = "Ada"
        assert len(_anchor.metas) == baseline + 100

        del watchers, watcher
        gc.collect()
        assert len(_anchor.metas) == baseline

    def test_destroyed_objects_are_collected(self):
        baseline = self._baseline()
        watchers = [Watcher() for _ in range(10)]
        for watcher in watchers:
            watcher.destroy()
            assert not meta_for(watcher).matching_listeners("name:change")

        del watchers, watcher
        gc.collect()
        assert len(_anchor.metas) == baseline

    def test_sync_observers_do_not_keep_objects_alive(self, tracked_ctx):
        baseline = self._baseline()
        watchers = [Watcher() for _ in range(10)]
        del watchers
        gc.collect()
        assert len(_anchor.metas) == baseline
