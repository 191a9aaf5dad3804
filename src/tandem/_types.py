"""Shared type definitions for tandem."""

from collections.abc import Callable, Hashable, Mapping
from typing import Any

# Attribute name on a record or model
type AttributeName = str

# Attribute mapping as handed to ``set`` (partial) or returned by ``to_json``
type Attributes = Mapping[str, Any]

# Identifier of a logical entity within its record class
type RecordId = Hashable

# Opaque subscriber handle, compared by identity only
type SubscriberIdentity = object

# Broadcast callback: receives the payload and the broadcasting owner
type UpdateCallback = Callable[[Any, Any], None]

# Configuration hooks
type LogHook = Callable[[str, BaseException | None], None]
type TrackHook = Callable[[Any], None]
