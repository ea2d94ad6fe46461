"""Exception hierarchy for mlogin."""


class MloginError(Exception):
    """Base class for every error mlogin reports to the user."""


class InvalidArgument(MloginError):
    """A flag combination or value was rejected before anything was run."""


class ExternalToolError(MloginError):
    """An external command failed, timed out, was missing or printed nothing usable."""


class ParseError(MloginError):
    """Structured output from an external command did not match its schema."""


class NotFoundError(MloginError):
    """A removal matched no existing item."""


class FilesystemError(MloginError):
    """A file operation failed for a reason other than the file being absent."""
