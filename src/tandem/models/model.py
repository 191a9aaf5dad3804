"""Model — a local copy of an entity that mirrors canonical records.

Different parts of an application each hold their own Model for "user #5".
A model class declares ``links`` to canonical record classes; every instance
then subscribes to the record with the same id, pushes its own changes to
it, and applies the changes other models push.

Example::

    class UserRecord(CanonicalRecord):
        pass

    class User(Model):
        links = (
            CanonicalLink(
                UserRecord,
                to_source=lambda attrs: {"id": attrs.get("id"), "name": attrs.get("name")},
                from_source=lambda attrs: attrs,
            ),
        )

    a = User({"id": 5, "name": "Zorah"})
    b = User({"id": 5})
    a.set({"name": "Noah"})
    b.get("name")  # "Noah"

"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, ClassVar, Self

from tandem.canonical.broadcast import UpdateBroadcaster
from tandem.canonical.cache import canonical_cache
from tandem.canonical.equality import deep_equal
from tandem.config import get_config

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from tandem._types import RecordId, SubscriberIdentity, UpdateCallback
    from tandem.canonical.broadcast import Subscription
    from tandem.canonical.cache import CanonicalCache
    from tandem.canonical.record import CanonicalRecord
    from tandem.models.collection import Collection

type Projection = Callable[[dict[str, Any]], Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class CanonicalLink:
    """Declares that a model class mirrors a canonical record class.

    Attributes:
        record_class: The CanonicalRecord subclass to subscribe to.
        id_field: Model attribute holding the canonical record's id.
        to_source: Maps model attributes to record attributes. ``None``
            means the model never writes to the record.
        from_source: Maps a record snapshot to model attributes. ``None``
            means the model ignores record updates.

    """

    record_class: type[CanonicalRecord[Any]]
    id_field: str = "id"
    to_source: Projection | None = None
    from_source: Projection | None = None


@dataclass(slots=True)
class _Binding:
    record: CanonicalRecord[Any]
    record_id: RecordId


class Model:
    """Attribute container with change notification and canonical links.

    Args:
        attributes: Initial attributes, merged over ``defaults``.
        collection: The collection this model belongs to, if any.
        cache: Canonical cache to resolve links against. Defaults to the
            module-level ``canonical_cache``.

    """

    id_attribute: ClassVar[str] = "id"
    defaults: ClassVar[Mapping[str, Any]] = {}
    links: ClassVar[tuple[CanonicalLink, ...]] = ()

    def __init__(
        self,
        attributes: Mapping[str, Any] | None = None,
        *,
        collection: Collection | None = None,
        cache: CanonicalCache | None = None,
    ) -> None:
        self.attributes: dict[str, Any] = {}
        self.id: RecordId | None = None
        self.collection = collection
        self._cache = cache
        self._events = UpdateBroadcaster(self)
        self._bound: dict[int, _Binding] = {}
        self._detached = False

        self.set({**self.defaults, **(attributes or {})}, silent=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"

    @property
    def cache(self) -> CanonicalCache:
        return self._cache if self._cache is not None else canonical_cache

    # ----- reading -----

    def get(self, name: str) -> Any:
        return self.attributes.get(name)

    def has(self, name: str) -> bool:
        """True if ``name`` holds a value other than None."""
        return self.attributes.get(name) is not None

    def pick(self, *names: str) -> dict[str, Any]:
        """The subset of attributes named, skipping absent or None values."""
        return {name: self.attributes[name] for name in names if self.has(name)}

    def to_json(self) -> dict[str, Any]:
        return dict(self.attributes)

    def is_new(self) -> bool:
        return not self.has(self.id_attribute)

    # ----- writing -----

    def set(
        self,
        attrs: Mapping[str, Any],
        *,
        unset: bool = False,
        silent: bool = False,
    ) -> Self:
        """Apply attribute changes, notify listeners, and push to linked records.

        Change detection matches CanonicalRecord.set: every key is applied,
        and listeners are notified once if any value actually changed.
        ``silent`` suppresses local listeners only; linked records are still
        updated.
        """
        return self._apply(attrs, unset=unset, silent=silent, source=None)

    def unset(self, name: str, *, silent: bool = False) -> Self:
        return self.set({name: None}, unset=True, silent=silent)

    def clear(self, *, silent: bool = False) -> Self:
        return self.set(dict.fromkeys(self.attributes), unset=True, silent=silent)

    def destroy(self) -> None:
        """Discard this copy: notify listeners, leave the collection, unsubscribe."""
        self._trigger()
        if self.collection is not None:
            self.collection.remove(self, silent=True)
        self.unsubscribe()

    # ----- listeners -----

    def on_update(self, identity: SubscriberIdentity, callback: UpdateCallback) -> Subscription:
        """Listen for local changes; called as ``callback(snapshot, model)``."""
        return self._events.on_update(identity, callback)

    def off_update(self, identity: SubscriberIdentity) -> int:
        return self._events.off_update(identity)

    # ----- canonical links -----

    @property
    def subscribed_records(self) -> tuple[CanonicalRecord[Any], ...]:
        """Canonical records this model is currently subscribed to."""
        return tuple(binding.record for binding in self._bound.values())

    def unsubscribe(self) -> None:
        """Detach from every linked canonical record.

        The model stays detached, even when later changes would give a link
        an id, until ``subscribe()`` is called.
        """
        self._detached = True
        for index in list(self._bound):
            self._unbind(index)

    def subscribe(self) -> None:
        """Re-attach after ``unsubscribe()``, binding every link that has an id."""
        self._detached = False
        self._sync_links(None, None)

    def _apply(
        self,
        attrs: Mapping[str, Any],
        *,
        unset: bool,
        silent: bool,
        source: CanonicalRecord[Any] | None,
    ) -> Self:
        previous = self.to_json()
        prev_id = self.id
        changed = False

        for key, value in attrs.items():
            if unset:
                if key in self.attributes:
                    changed = True
                    del self.attributes[key]
            else:
                if key not in self.attributes or not deep_equal(self.attributes[key], value):
                    changed = True
                self.attributes[key] = value

        if self.id_attribute in attrs:
            self.id = self.attributes.get(self.id_attribute)

        if changed and not silent:
            self._trigger()

        if self.collection is not None and prev_id != self.id:
            self.collection._update_model_reference(self.id, prev_id, self)

        self._sync_links(previous if changed else None, source)
        return self

    def _sync_links(
        self,
        previous: dict[str, Any] | None,
        source: CanonicalRecord[Any] | None,
    ) -> None:
        if self._detached:
            return
        for index, link in enumerate(self.links):
            record_id = self.attributes.get(link.id_field)
            binding = self._bound.get(index)

            if binding is not None and binding.record_id != record_id:
                self._unbind(index)
                binding = None

            if binding is None:
                if record_id is not None:
                    self._bind(index, link, record_id)
                continue

            if previous is not None and binding.record is not source:
                self._push(link, binding.record, previous)

    def _bind(self, index: int, link: CanonicalLink, record_id: RecordId) -> None:
        record = self.cache.get_or_insert(link.record_class, record_id)
        record.on_update(self, partial(self._receive, link))
        self._bound[index] = _Binding(record=record, record_id=record_id)

        # Local values win over the record's; the record only fills gaps.
        if link.from_source is not None and record.attributes:
            adopted = {
                key: value
                for key, value in link.from_source(record.to_json()).items()
                if key not in self.attributes
            }
            if adopted:
                self._apply(adopted, unset=False, silent=False, source=record)
        if link.to_source is not None:
            self._push(link, record, None)

    def _unbind(self, index: int) -> None:
        binding = self._bound.pop(index)
        binding.record.remove_subscription(self, binding.record_id)

    def _push(
        self,
        link: CanonicalLink,
        record: CanonicalRecord[Any],
        previous: dict[str, Any] | None,
    ) -> None:
        if link.to_source is None:
            return
        projected = dict(link.to_source(self.to_json()))
        if previous is not None:
            stale = [key for key in link.to_source(previous) if key not in projected]
            if stale:
                record.set(dict.fromkeys(stale), self, unset=True)
        record.set(projected, self)

    def _receive(
        self,
        link: CanonicalLink,
        snapshot: dict[str, Any],
        record: CanonicalRecord[Any],
    ) -> None:
        if link.from_source is None:
            return
        self._apply(link.from_source(snapshot), unset=False, silent=False, source=record)

    def _trigger(self) -> None:
        result = self._events.trigger_update(self.to_json())
        if result.failures:
            log = get_config().log
            for failure in result.failures:
                log(f"{type(self).__name__}: update listener failed", failure.error)
