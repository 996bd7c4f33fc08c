"""Read and edit Maven pom.xml files without disturbing their formatting."""

from .errors import (
    DuplicateElementError,
    MissingValueError,
    PomError,
    PomParseError,
    StructuralPreconditionError,
)
from .pom_file import MutablePom
from .pom_models import GAV, Build, Dependency, Plugin, PomSnapshot, Profile, Property

__all__ = [
    "MutablePom",
    "GAV", "Build", "Dependency", "Plugin", "PomSnapshot", "Profile", "Property",
    "PomError", "PomParseError", "StructuralPreconditionError",
    "DuplicateElementError", "MissingValueError",
]
