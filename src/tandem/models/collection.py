"""Collection — an ordered list of models that bubbles their updates up.

Listening on a collection is enough to see changes to any of its models,
including changes that arrive from canonical records. Removing a model from
a collection unsubscribes it from its canonical records, so a record whose
only subscribers were in a discarded list becomes eligible for eviction.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from tandem.canonical.broadcast import UpdateBroadcaster
from tandem.config import get_config
from tandem.models.model import CanonicalLink, Model

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from tandem._types import RecordId, SubscriberIdentity, UpdateCallback
    from tandem.canonical.broadcast import Subscription
    from tandem.canonical.cache import CanonicalCache

type Item = Model | Mapping[str, Any]


class Collection:
    """Ordered, id-indexed list of models of one class.

    Subclasses pick the model class with ``model``. As a shorthand they may
    declare ``links`` instead, in which case a model subclass carrying those
    links is derived from ``model`` when the collection class is created.

    Args:
        items: Initial models or attribute mappings.
        model: Overrides the class-level ``model`` for this instance.
        cache: Canonical cache handed to models created by this collection.

    """

    model: ClassVar[type[Model]] = Model
    links: ClassVar[tuple[CanonicalLink, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        links = cls.__dict__.get("links")
        if links:
            cls.model = type(f"{cls.__name__}Model", (cls.model,), {"links": tuple(links)})

    def __init__(
        self,
        items: Item | Iterable[Item] | None = None,
        *,
        model: type[Model] | None = None,
        cache: CanonicalCache | None = None,
    ) -> None:
        self.model_class: type[Model] = model if model is not None else type(self).model
        self.models: list[Model] = []
        self._by_id: dict[RecordId, Model] = {}
        self._cache = cache
        self._events = UpdateBroadcaster(self)

        if items is not None:
            self.add(items, silent=True)

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[Model]:
        return iter(list(self.models))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} len={len(self)}>"

    def to_json(self) -> list[dict[str, Any]]:
        return [model.to_json() for model in self.models]

    def get(self, key: Item | RecordId | None) -> Model | None:
        """Look up a model by instance, id, or a mapping carrying the id."""
        if isinstance(key, Model):
            if any(model is key for model in self.models):
                return key
            key = key.id
        elif isinstance(key, Mapping):
            key = key.get(self.model_class.id_attribute)
        if key is None:
            return None
        return self._by_id.get(key)

    def add(self, items: Item | Iterable[Item], *, silent: bool = False) -> list[Model]:
        """Add models; a mapping or model whose id is already present merges into it.

        Several items are passed as a list (or any non-tuple iterable).

        Returns:
            The models that were newly added.

        """
        added: list[Model] = []
        for item in _as_list(items):
            existing = self.get(item)
            if existing is not None:
                if existing is not item:
                    attrs = item.to_json() if isinstance(item, Model) else item
                    existing.set(attrs, silent=silent)
                continue

            model = item if isinstance(item, Model) else self.model_class(item, cache=self._cache)
            self.models.append(model)
            self._add_reference(model)
            added.append(model)

        if added and not silent:
            self._trigger()
        return added

    def remove(self, items: Item | RecordId | Iterable[Item], *, silent: bool = False) -> list[Model]:
        """Remove models and unsubscribe them from their canonical records.

        A tuple is one composite id; pass a list to remove several items.

        Returns:
            The models that were removed. Unknown items are ignored.

        """
        removed: list[Model] = []
        for item in _as_list(items):
            model = self.get(item)
            if model is None:
                continue
            self.models = [m for m in self.models if m is not model]
            self._remove_reference(model)
            model.unsubscribe()
            removed.append(model)

        if removed and not silent:
            self._trigger()
        return removed

    def reset(self, items: Item | Iterable[Item] | None = None, *, silent: bool = False) -> None:
        """Replace every model. Old models are unsubscribed."""
        for model in self.models:
            self._remove_reference(model)
            model.unsubscribe()
        self.models = []
        self._by_id = {}

        if items is not None:
            self.add(items, silent=True)
        if not silent:
            self._trigger()

    def unsubscribe(self) -> None:
        """Unsubscribe every model from its canonical records, keeping them listed."""
        for model in self.models:
            model.unsubscribe()

    def on_update(self, identity: SubscriberIdentity, callback: UpdateCallback) -> Subscription:
        """Listen for changes; called as ``callback(models_json, collection)``."""
        return self._events.on_update(identity, callback)

    def off_update(self, identity: SubscriberIdentity) -> int:
        return self._events.off_update(identity)

    def _add_reference(self, model: Model) -> None:
        model.collection = self
        if model.id is not None:
            self._by_id[model.id] = model
        model.on_update(self, self._on_model_update)

    def _remove_reference(self, model: Model) -> None:
        if model.id is not None and self._by_id.get(model.id) is model:
            del self._by_id[model.id]
        if model.collection is self:
            model.collection = None
        model.off_update(self)

    def _update_model_reference(
        self, record_id: RecordId | None, prev_id: RecordId | None, model: Model
    ) -> None:
        """Re-index a model whose id changed. A missing new id is ignored."""
        if record_id is None:
            return
        if prev_id is not None and self._by_id.get(prev_id) is model:
            del self._by_id[prev_id]
        self._by_id[record_id] = model

    def _on_model_update(self, snapshot: dict[str, Any], model: Model) -> None:
        self._trigger()

    def _trigger(self) -> None:
        result = self._events.trigger_update(self.to_json())
        if result.failures:
            log = get_config().log
            for failure in result.failures:
                log(f"{type(self).__name__}: update listener failed", failure.error)


def _as_list(items: Any) -> list[Any]:
    # Tuples are treated as single (composite) ids; pass a list to act on several.
    if isinstance(items, (Model, Mapping, str, bytes, tuple)) or not hasattr(items, "__iter__"):
        return [items]
    return list(items)
