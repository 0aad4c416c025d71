"""Application layer: settings loading, wiring and the public read views."""

from brewlog.application.config_loader import load_settings, load_settings_async
from brewlog.application.factory import StoreFactory
from brewlog.application.feed_registry import FileFeedRegistry
from brewlog.application.feed_service import FeedItem, FeedService, format_time_ago
from brewlog.application.profile_reader import ProfileSnapshot, PublicProfileReader

__all__ = [
    "FeedItem",
    "FeedService",
    "FileFeedRegistry",
    "ProfileSnapshot",
    "PublicProfileReader",
    "StoreFactory",
    "format_time_ago",
    "load_settings",
    "load_settings_async",
]
