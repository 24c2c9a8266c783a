"""Error kinds raised (or logged) while maintaining the rental report."""


class ReportError(Exception):
    """Base class for rental report errors."""


class StorageUnavailable(ReportError):
    """The persistence layer could not be reached.

    Propagates out of the unit of work so the triggering detail mutation
    is rolled back together with the summary update.
    """


class InvariantViolation(ReportError):
    """A detail row was deleted for a genre that has no summary entry.

    The summary was already out of sync before the deletion. The
    maintainer logs this and skips the decrement instead of raising.
    """

    def __init__(self, genre: str, detail_id: int | None = None):
        self.genre = genre
        self.detail_id = detail_id
        super().__init__(
            f"no summary entry for genre {genre!r} (detail {detail_id}); "
            f"run a rebuild to resynchronize"
        )


class DuplicateGenreKey(ReportError):
    """A second summary entry was created for an existing genre."""

    def __init__(self, genre: str):
        self.genre = genre
        super().__init__(f"summary entry for genre {genre!r} already exists")
