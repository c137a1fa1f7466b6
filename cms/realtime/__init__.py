"""Change notifications: in-process feed and the WebSocket bridge."""

from .feed import ChangeEvent, ChangeFeed, Subscription, change_feed

__all__ = ["ChangeEvent", "ChangeFeed", "Subscription", "change_feed"]
