"""Tandem — keeps every in-memory copy of a logical record in step.

When the same entity ("user #5") is displayed or edited in several unrelated
places, each place holds its own Model. Models linked to the same canonical
record see each other's changes without knowing about each other.

Quick start::

    from tandem import CanonicalLink, CanonicalRecord, Model

    class UserRecord(CanonicalRecord):
        pass

    class User(Model):
        links = (CanonicalLink(UserRecord, to_source=dict, from_source=dict),)

    header, profile = User({"id": 5}), User({"id": 5})
    profile.set({"name": "Zorah"})
    header.get("name")  # "Zorah"

Layers::

    tandem.canonical      Broadcast primitive, canonical records, cache
    tandem.models         Subscribing models and collections
    tandem.observability  Event log of subscriptions, broadcasts, evictions
    tandem.config         Process-wide settings and hooks

"""

__version__ = "0.1.0"
__all__ = [
    "CanonicalCache",
    "CanonicalLink",
    "CanonicalRecord",
    "Collection",
    "Model",
    "TandemConfig",
    "UpdateBroadcaster",
    "__version__",
    "canonical_cache",
    "configure",
    "get_config",
    "load_config",
]

_LAZY = {
    "CanonicalCache": "tandem.canonical.cache",
    "canonical_cache": "tandem.canonical.cache",
    "CanonicalRecord": "tandem.canonical.record",
    "UpdateBroadcaster": "tandem.canonical.broadcast",
    "CanonicalLink": "tandem.models.model",
    "Model": "tandem.models.model",
    "Collection": "tandem.models.collection",
    "TandemConfig": "tandem.config",
    "configure": "tandem.config",
    "get_config": "tandem.config",
    "load_config": "tandem.config_loader",
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import tandem`` fast while providing a flat top-level API.
    """
    module_name = _LAZY.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
