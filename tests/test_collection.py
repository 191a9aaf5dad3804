"""Tests for tandem.models.collection — ordered, id-indexed model lists."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

from tandem.canonical.cache import CanonicalCache, canonical_cache
from tandem.canonical.record import CanonicalRecord
from tandem.config import configure
from tandem.models.collection import Collection
from tandem.models.model import CanonicalLink, Model


class UserRecord(CanonicalRecord[Any]):
    pass


def _same(attrs: dict[str, Any]) -> dict[str, Any]:
    return attrs


class Users(Collection):
    links = (CanonicalLink(UserRecord, to_source=_same, from_source=_same),)


class KeyedModel(Model):
    id_attribute = "_id"


class TestAdd:
    def test_initial_items_become_models(self) -> None:
        collection = Collection([{"id": 1}, {"id": 2}])

        assert len(collection) == 2
        assert all(type(model) is Model for model in collection)
        assert collection.to_json() == [{"id": 1}, {"id": 2}]

    def test_single_mapping(self) -> None:
        collection = Collection({"id": 1})
        assert len(collection) == 1

    def test_add_returns_new_models_and_notifies(self) -> None:
        collection = Collection()
        callback = MagicMock()
        collection.on_update(collection, callback)

        added = collection.add([{"id": 1}, {"id": 2}])

        assert [model.id for model in added] == [1, 2]
        callback.assert_called_once_with([{"id": 1}, {"id": 2}], collection)

    def test_same_id_merges(self) -> None:
        collection = Collection([{"id": 1, "name": "Zorah"}])
        original = collection.get(1)

        added = collection.add({"id": 1, "email": "z@example.com"})

        assert added == []
        assert len(collection) == 1
        assert collection.get(1) is original
        assert original is not None
        assert original.to_json() == {"id": 1, "name": "Zorah", "email": "z@example.com"}

    def test_adding_a_model_instance(self) -> None:
        collection = Collection()
        model = Model({"id": 1})

        collection.add(model)

        assert collection.get(1) is model
        assert model.collection is collection

    def test_models_without_id_are_kept(self) -> None:
        collection = Collection([{"name": "a"}, {"name": "b"}])
        assert len(collection) == 2

    def test_model_override(self) -> None:
        collection = Collection([{"_id": "x"}], model=KeyedModel)

        assert collection.model_class is KeyedModel
        assert collection.get("x") is not None
        assert collection.get({"_id": "x"}) is not None


class TestGet:
    def test_by_id_mapping_and_model(self) -> None:
        collection = Collection([{"id": 1}])
        member = collection.get(1)

        assert member is not None
        assert collection.get({"id": 1}) is member
        assert collection.get(member) is member
        assert collection.get(Model({"id": 1})) is member

    def test_missing(self) -> None:
        collection = Collection([{"id": 1}])

        assert collection.get(2) is None
        assert collection.get(None) is None
        assert collection.get(Model()) is None


class TestRemove:
    def test_remove_by_id(self) -> None:
        collection = Collection([{"id": 1}, {"id": 2}])
        callback = MagicMock()
        collection.on_update(collection, callback)

        removed = collection.remove(1)

        assert [model.id for model in removed] == [1]
        assert removed[0].collection is None
        assert collection.get(1) is None
        assert collection.to_json() == [{"id": 2}]
        callback.assert_called_once_with([{"id": 2}], collection)

    def test_remove_unknown_is_silent(self) -> None:
        collection = Collection([{"id": 1}])
        callback = MagicMock()
        collection.on_update(collection, callback)

        assert collection.remove([5, {"id": 6}]) == []
        callback.assert_not_called()

    def test_tuple_id_is_one_key(self) -> None:
        collection = Collection([{"id": ("org", 1)}, {"id": "org"}])

        removed = collection.remove(("org", 1))

        assert [model.id for model in removed] == [("org", 1)]
        assert collection.get("org") is not None

    def test_removed_model_stops_bubbling(self) -> None:
        collection = Collection([{"id": 1}])
        (model,) = collection.remove(1)
        callback = MagicMock()
        collection.on_update(collection, callback)

        model.set({"name": "Zorah"})

        callback.assert_not_called()

    def test_remove_unsubscribes_from_canonical_records(self) -> None:
        configure(cache_grace_period=0)
        users = Users([{"id": 1}, {"id": 2}])

        users.remove(1)

        assert canonical_cache.get(UserRecord, 1) is None
        assert canonical_cache.get(UserRecord, 2) is not None

    def test_destroy_leaves_collection(self) -> None:
        collection = Collection([{"id": 1}])
        model = collection.get(1)
        assert model is not None

        model.destroy()

        assert len(collection) == 0


class TestReset:
    def test_reset_replaces_models(self) -> None:
        configure(cache_grace_period=0)
        users = Users([{"id": 1}])
        callback = MagicMock()
        users.on_update(users, callback)

        users.reset([{"id": 2}, {"id": 3}])

        assert [model.id for model in users] == [2, 3]
        assert users.get(1) is None
        assert canonical_cache.get(UserRecord, 1) is None
        callback.assert_called_once()

    def test_reset_to_empty(self) -> None:
        collection = Collection([{"id": 1}])
        collection.reset(silent=True)
        assert len(collection) == 0


class TestModelUpdates:
    def test_model_change_bubbles_up(self) -> None:
        collection = Collection([{"id": 1}])
        callback = MagicMock()
        collection.on_update(collection, callback)

        model = collection.get(1)
        assert model is not None
        model.set({"name": "Zorah"})

        callback.assert_called_once_with([{"id": 1, "name": "Zorah"}], collection)

    def test_id_change_reindexes(self) -> None:
        collection = Collection([{"id": 1}])
        model = collection.get(1)
        assert model is not None

        model.set({"id": 2})

        assert collection.get(2) is model
        assert collection.get(1) is None

    def test_losing_id_keeps_old_index(self) -> None:
        collection = Collection([{"id": 1}])
        model = collection.get(1)
        assert model is not None

        model.unset("id")

        assert collection.get(1) is model

    def test_off_update(self) -> None:
        collection = Collection([{"id": 1}])
        callback = MagicMock()
        collection.on_update(collection, callback)

        assert collection.off_update(collection) == 1
        collection.add({"id": 2})

        callback.assert_not_called()

    def test_failing_listener_is_logged(self) -> None:
        log = MagicMock()
        configure(log=log)
        collection = Collection()
        error = RuntimeError("listener")
        collection.on_update(object(), MagicMock(side_effect=error))

        collection.add({"id": 1})

        log.assert_called_once_with("Collection: update listener failed", error)


class TestLinks:
    def test_shorthand_derives_model_class(self) -> None:
        assert Users.model.__name__ == "UsersModel"
        assert issubclass(Users.model, Model)
        assert Users.model.links == Users.links
        assert Model.links == ()

    def test_subclass_without_links_keeps_model(self) -> None:
        class People(Collection):
            model = KeyedModel

        assert People.model is KeyedModel

    def test_canonical_updates_reach_collection_listeners(self) -> None:
        users = Users([{"id": 1}])
        callback = MagicMock()
        users.on_update(users, callback)

        other = Users.model({"id": 1})
        other.set({"name": "Zorah"})

        callback.assert_called_once_with([{"id": 1, "name": "Zorah"}], users)

    def test_unsubscribe_keeps_models_listed(self) -> None:
        users = Users([{"id": 1}])

        users.unsubscribe()

        assert len(users) == 1
        member = users.get(1)
        assert member is not None
        assert member.subscribed_records == ()

    def test_private_cache_reaches_models(self) -> None:
        cache = CanonicalCache()
        users = Users([{"id": 1}], cache=cache)

        member = users.get(1)
        assert member is not None
        assert member.cache is cache
        assert cache.get(UserRecord, 1) is not None
        assert canonical_cache.get(UserRecord, 1) is None
