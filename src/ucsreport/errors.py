"""Exception taxonomy. Every per-target failure is a ReportError."""


class ReportError(Exception):
    """Base class for failures that abort one target's report."""


class ControllerConnectionError(ReportError):
    """A session to the controller could not be established."""


class QueryError(ReportError):
    """A query failed after the session was established."""


class ConfigurationError(ReportError):
    """The catalog, rule list or target list is malformed.

    Raised at startup, before any target is processed.
    """
