"""Exceptions raised inside the data-access core.

None of these cross the manager boundary for business outcomes: managers
catch `CommitError` and turn it into a failed `Result`.
`DetachedEntityError` signals a programming error (an untracked snapshot
handed to `update`) and is allowed to propagate.
"""


class DataAccessError(Exception):
    """Base class for data-access failures."""


class CommitError(DataAccessError):
    """The unit of work could not commit; the transaction was rolled back."""


class DetachedEntityError(DataAccessError):
    """An entity that is not tracked by the session was passed to `update`."""
