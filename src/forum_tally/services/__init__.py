"""Business logic services for the forum tally application."""

from .cache import ReadThroughCache
from .content import ContentService, ContentStore
from .forums import ForumService
from .invalidation import InvalidationCoordinator, keys_for
from .ledger import VoteLedger
from .listing import ListingService
from .ranking import rank
from .tally import TallyEngine

__all__ = [
    "ContentService",
    "ContentStore",
    "ForumService",
    "InvalidationCoordinator",
    "ListingService",
    "ReadThroughCache",
    "TallyEngine",
    "VoteLedger",
    "keys_for",
    "rank",
]
