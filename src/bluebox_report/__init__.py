"""Summer top-genre rental report with an incrementally maintained summary."""

from .errors import DuplicateGenreKey, InvariantViolation, ReportError, StorageUnavailable  # noqa: F401
from .maintainer import SummaryMaintainer  # noqa: F401
from .models import DetailRecord, SummaryEntry  # noqa: F401
from .report import RentalReport  # noqa: F401
from .store import MemoryStore  # noqa: F401
