"""
Exceptions raised while building a wind loads source.

Every error derives from WindLoadsError and from the built-in category that
matches it, so callers may catch either.
"""


class WindLoadsError(Exception):
    """Base class for all windloads errors."""


class SourceUnavailable(WindLoadsError):
    """The bundle file cannot be opened."""


class DecodeFailure(WindLoadsError, ValueError):
    """The bundle cannot be parsed into channels and a time axis."""


class EmptyCorpus(WindLoadsError, ValueError):
    """No channel holds data when a sample count must be inferred."""


class MissingChannel(WindLoadsError, LookupError):
    """A selector requested a channel absent from the corpus."""


class InvalidSampleCount(WindLoadsError, ValueError):
    """An explicit sample count is zero or larger than a channel."""


class UnsupportedOperation(WindLoadsError, RuntimeError):
    """The operation is not supported by this object, e.g. feeding the source."""
