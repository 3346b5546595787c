from .base import Notification, Provider, Publisher, WatcherCursor
from .github import GithubEventsProvider
from .page_titles import PageTitleProvider
from .untappd import UntappdCheckinsProvider

__all__ = [
    "GithubEventsProvider",
    "Notification",
    "PageTitleProvider",
    "Provider",
    "Publisher",
    "UntappdCheckinsProvider",
    "WatcherCursor",
]
