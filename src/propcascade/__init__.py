"""propcascade: property-change propagation with dependent keys, chains and batching."""

from importlib.metadata import version as _version

__version__ = _version("propcascade")

from propcascade.context import PropagationContext, current_context, use_context
from propcascade.meta import Meta, PropertyChangeAware, meta_for, peek_meta
from propcascade.property_events import (
    notify_property_change,
    override_chains,
    begin_property_changes,
    end_property_changes,
)
from propcascade.action import change_properties, property_changes, batched
from propcascade.events import add_listener, remove_listener, has_listeners, send_event, change_event
from propcascade.observers import add_observer, remove_observer, flush_sync_observers
from propcascade.watching import watch, unwatch, is_watching, watcher_count
from propcascade.computed import ComputedProperty, computed
from propcascade.expand import expand_properties
from propcascade.accessors import get, get_path, set_property
from propcascade.render import run_in_render_transaction
from propcascade.subject import ObservableObject
from propcascade.errors import PropcascadeError, ReadOnlyPropertyError, RenderMutationError

__all__ = [
    "PropagationContext",
    "current_context",
    "use_context",
    "Meta",
    "PropertyChangeAware",
    "meta_for",
    "peek_meta",
    "notify_property_change",
    "override_chains",
    "begin_property_changes",
    "end_property_changes",
    "change_properties",
    "property_changes",
    "batched",
    "add_listener",
    "remove_listener",
    "has_listeners",
    "send_event",
    "change_event",
    "add_observer",
    "remove_observer",
    "flush_sync_observers",
    "watch",
    "unwatch",
    "is_watching",
    "watcher_count",
    "ComputedProperty",
    "computed",
    "expand_properties",
    "get",
    "get_path",
    "set_property",
    "run_in_render_transaction",
    "ObservableObject",
    "PropcascadeError",
    "ReadOnlyPropertyError",
    "RenderMutationError",
]
