class ProgressionError(Exception):
    """Base class for progression engine errors."""


class ConfigurationError(ProgressionError, ValueError):
    """Raised when a rule, profile or settings file is malformed.

    Configuration errors are fatal for the current evaluation and are never
    repaired silently. The caller has to supply corrected configuration and
    evaluate again.
    """
