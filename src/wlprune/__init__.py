"""wlprune: prune the oldest entries from a YouTube Watch Later playlist."""

__version__ = "0.1.0"
