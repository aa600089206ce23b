"""Error taxonomy for the conversion pipeline.

Only :class:`ManifestNotLoaded` is raised to callers.  The other conditions
are tolerated: they are logged and recorded as :class:`~flowcms.models.issue.Issue`
entries so a whole batch can be reported at once.
"""


class FlowCMSError(Exception):
    """Base class for all pipeline errors."""


class ParseRecoverable(FlowCMSError):
    """Malformed markup was recovered into a partial tree."""


class SelectorUnresolvable(FlowCMSError):
    """An inferred selector does not resolve back to its element."""


class ManifestNotLoaded(FlowCMSError):
    """The manifest was accessed before it was built or loaded."""


class SchemaNameCollision(FlowCMSError):
    """Two detected entries normalised to the same identifier."""


class UnknownFieldReference(FlowCMSError):
    """A schema entry does not match anything in the live tree."""


class PageFailed(FlowCMSError):
    """A page raised while being converted and was left out of the batch."""
