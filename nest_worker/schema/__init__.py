"""ORM models; importing this package registers every table on ``Base.metadata``."""

from .boards import Board, BoardCard, BoardCardSource, Source
from .jobs import BackgroundJob, BackgroundJobEvent
from .meetings import Meeting, Nest
from .notifications import InAppNotification

__all__ = ["BackgroundJob", "BackgroundJobEvent", "Board", "BoardCard", "BoardCardSource", "InAppNotification", "Meeting", "Nest", "Source"]
