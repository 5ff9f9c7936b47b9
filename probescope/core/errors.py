"""
Exception types shared across ProbeScope.

Library code raises these; the CLI layer turns them into an error message
on stderr and a non-zero exit code.
"""


class ProbescopeError(Exception):
    """Base class for all ProbeScope errors."""
    pass


class CatalogReadError(ProbescopeError):
    """The chip catalog (target description files) could not be read."""
    pass


class ProbeEnumerationError(ProbescopeError):
    """Listing the attached debug probes failed."""
    pass


class ProbeSelectorError(ProbescopeError):
    """A probe selector string is malformed."""
    pass


class UnsupportedShellError(ProbescopeError):
    """Completion was requested for a shell other than bash or zsh."""
    pass


class CompletionPatternMismatch(ProbescopeError):
    """A completion script anchor was not found or a pattern did not compile."""
    pass


class ConfigError(ProbescopeError):
    """Configuration error."""
    pass
