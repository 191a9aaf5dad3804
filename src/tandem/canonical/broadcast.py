"""Update broadcaster — identity-keyed subscriptions with originator exclusion.

A broadcaster belongs to one owner (a canonical record, a model, or a
collection). Subscribers register a callback under their own identity; the
owner broadcasts a payload to everyone except the subscriber that caused the
change. That exclusion is what keeps a writer from receiving its own echo.

Identities are opaque and compared with ``is``. Two subscribers holding
equal-looking state never collide.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tandem._types import SubscriberIdentity, UpdateCallback


@dataclass(frozen=True, slots=True, eq=False)
class Subscription:
    """A registered (identity, callback) pair.

    Compared by object identity, so two registrations of the same
    subscriber are distinct entries.

    Attributes:
        identity: The subscriber handle supplied at registration.
        callback: Called as ``callback(payload, owner)`` on broadcast.

    """

    identity: SubscriberIdentity
    callback: UpdateCallback


@dataclass(frozen=True, slots=True)
class CallbackFailure:
    """A callback that raised during a broadcast.

    Attributes:
        subscription: The subscription whose callback raised.
        error: The exception it raised.

    """

    subscription: Subscription
    error: Exception


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    """Outcome of one ``trigger_update`` call.

    Attributes:
        delivered: Number of callbacks that returned normally.
        failures: Callbacks that raised, in broadcast order.

    """

    delivered: int = 0
    failures: tuple[CallbackFailure, ...] = ()


class UpdateBroadcaster:
    """Ordered subscriber list with originator-excluding broadcast.

    Broadcasts iterate over a snapshot of the subscriber list taken when the
    broadcast starts. Subscriptions added by a callback are first called on
    the next broadcast; subscriptions removed by a callback are skipped if
    they have not been reached yet.

    Args:
        owner: Passed as the second argument to every callback.

    """

    __slots__ = ("_owner", "_subscriptions")

    def __init__(self, owner: Any) -> None:
        self._owner = owner
        self._subscriptions: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        """Number of registered subscriptions."""
        return len(self._subscriptions)

    def get_subscribers(self) -> tuple[Subscription, ...]:
        """Snapshot of the current subscriptions in registration order."""
        return tuple(self._subscriptions)

    def on_update(self, identity: SubscriberIdentity, callback: UpdateCallback) -> Subscription:
        """Register ``callback`` for every broadcast not originated by ``identity``."""
        subscription = Subscription(identity=identity, callback=callback)
        self._subscriptions.append(subscription)
        return subscription

    def off_update(self, identity: SubscriberIdentity) -> int:
        """Remove every subscription registered under ``identity``.

        Returns:
            Number of subscriptions removed (0 when none matched).

        """
        before = len(self._subscriptions)
        self._subscriptions = [s for s in self._subscriptions if s.identity is not identity]
        return before - len(self._subscriptions)

    def trigger_update(self, payload: Any, origin: SubscriberIdentity = None) -> BroadcastResult:
        """Call every subscriber except ``origin`` with ``(payload, owner)``.

        ``origin=None`` excludes nobody unless a subscriber registered under
        ``None`` itself. A callback that raises does not stop the broadcast. Its exception is
        collected into the result for the owner to report.

        """
        delivered = 0
        failures: list[CallbackFailure] = []

        for subscription in tuple(self._subscriptions):
            if subscription.identity is origin:
                continue
            if not any(s is subscription for s in self._subscriptions):
                continue
            try:
                subscription.callback(payload, self._owner)
            except Exception as exc:
                failures.append(CallbackFailure(subscription=subscription, error=exc))
            else:
                delivered += 1

        return BroadcastResult(delivered=delivered, failures=tuple(failures))
