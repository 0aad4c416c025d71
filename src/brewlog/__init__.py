"""brewlog - coffee brewing journal backed by a personal AT Protocol repository."""

__version__ = "0.1.0"
