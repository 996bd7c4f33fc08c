"""Exception hierarchy for POM reading and editing.

All errors raised by this package derive from :class:`PomError`, so callers
(and the CLI) can catch one type. I/O failures are not wrapped: ``OSError``
propagates unchanged.
"""


class PomError(Exception):
    """Base class for every error raised by ``pomversions``."""


class PomParseError(PomError, ValueError):
    """The input is not well-formed XML, or cannot be decoded."""


class StructuralPreconditionError(PomError):
    """An edit needs an element that the document does not contain.

    Raised instead of creating the missing structure, e.g. when setting the
    parent version of a POM that has no ``<parent><version>``.
    """


class DuplicateElementError(StructuralPreconditionError):
    """An element that may occur at most once occurs several times."""


class MissingValueError(PomError, LookupError):
    """A coordinate (groupId, artifactId) is neither declared nor inherited."""
