"""Editable pom.xml with version inheritance.

:class:`MutablePom` wraps a lossless XML tree of a pom.xml. It reports the
effective project coordinates and lets callers change the project version.
The version is inherited from ``<parent>`` when the POM doesn't declare one,
so whether a ``<version>`` element belongs in the file is decided only when
the POM is written: it is kept (or added) when the POM already declared an
explicit version or when the new version differs from the parent's, and
removed otherwise. Every other byte of the file is written back unchanged.
"""

from pathlib import Path
from typing import Optional

from .errors import DuplicateElementError, MissingValueError, StructuralPreconditionError
from .pom_models import (
    GAV,
    Build,
    DependencyManagement,
    PomSnapshot,
    Profile,
    Property,
    get_build,
    get_dependencies,
    get_dependency_management,
    get_modules,
    get_profiles,
    get_properties,
    read_dependency,
)
from .xml_tree import Document, Element, Text, parse, read_document, write_document

POM_XML = "pom.xml"

# Packaging Maven assumes when <packaging> is absent.
DEFAULT_PACKAGING = "jar"


class MutablePom:
    """A parsed pom.xml whose project version can be changed and written back.

    Attributes:
        document: The underlying lossless XML document.
        project: The root ``<project>`` element.
        prefer_explicit_version: Whether the POM declared its own ``<version>``
            when it was read. If so, a ``<version>`` element is always written,
            even when it equals the parent version.
    """

    def __init__(self, document: Document):
        self.document = document
        self.project: Element = document.root

        versions = self.project.get_children("version")
        if len(versions) > 1:
            raise DuplicateElementError(
                f"<{self.project.name}> declares <version> {len(versions)} times"
            )
        self._version = self._get_element_value("version")
        if self._version is None:
            self._version = self.parent_version
            self.prefer_explicit_version = False
        else:
            # A parent version that happens to be equal says nothing about intent,
            # so an explicit version stays explicit.
            self.prefer_explicit_version = True

    def __repr__(self):
        return f"<MutablePom {self.group_id}:{self.artifact_id}:{self._version}>"

    @classmethod
    def parse(cls, source) -> "MutablePom":
        """Build a MutablePom from ``bytes``, ``str`` or a binary stream."""
        return cls(parse(source))

    @classmethod
    def read(cls, path) -> "MutablePom":
        """Read a pom.xml file, or the ``pom.xml`` inside a directory."""
        path = Path(path)
        if path.is_dir():
            path = path / POM_XML
        return cls(read_document(path))

    def write(self, target):
        """Write the POM to a file path or a binary stream.

        Raises:
            OSError: If the file cannot be written.
        """
        self._sync_version_element()
        if hasattr(target, "write"):
            self.document.write(target)
        else:
            write_document(self.document, target)

    def to_xml(self) -> str:
        """Return the POM text as it would be written."""
        self._sync_version_element()
        return self.document.to_xml()

    # ── Version ──────────────────────────────────────────────────────────────

    @property
    def version(self) -> Optional[str]:
        """The effective project version.

        ``None`` only when neither the project nor its parent declare a version.
        """
        return self._version

    def set_version(self, version: str):
        """Set the effective project version.

        Only the in-memory value changes; the ``<version>`` element is added,
        updated or removed when the POM is written.
        """
        if not version:
            raise ValueError("version must be a non-empty string")
        self._version = version

    @property
    def parent(self) -> Optional[GAV]:
        element = self.project.get_child("parent")
        return GAV(element) if element is not None else None

    @property
    def parent_version(self) -> Optional[str]:
        parent = self.parent
        return parent.version if parent is not None else None

    def set_parent_version(self, version: str):
        """Set the version in the ``<parent>`` declaration.

        This never changes the effective version of the project itself.

        Raises:
            StructuralPreconditionError: If there is no ``<parent><version>``.
        """
        element = self.project.get_child("parent/version")
        if element is None:
            raise StructuralPreconditionError("No <parent><version> to update")
        element.set_text(version)

    def _sync_version_element(self):
        """Add, update or remove the project ``<version>`` to match the effective version."""
        write_explicit = self._version is not None and (
            self.prefer_explicit_version or self._version != self.parent_version
        )
        if write_explicit:
            version_el = self.project.get_child("version")
            if version_el is None:
                version_el = self._add_version_element()
            if version_el.trimmed_text != self._version:
                version_el.set_text(self._version)
        else:
            self._remove_version_element()

    def _add_version_element(self) -> Element:
        """Insert an empty ``<version>`` where Maven POMs conventionally have it.

        The element goes right before the element following ``<artifactId>``
        (or before ``<artifactId>`` itself if nothing follows it), and is
        followed by a copy of the whitespace that indents that element, so the
        one-element-per-line layout is kept. A POM written on one line stays
        on one line. The element takes the namespace prefix of the root.
        """
        elements = self.project.elements()
        anchor = None
        artifact = self.project.get_child("artifactId")
        if artifact is not None:
            after = elements[elements.index(artifact) + 1:]
            anchor = after[0] if after else artifact
        elif elements:
            anchor = elements[0]

        prefix = self.project.name.rpartition(":")[0]
        version_el = Element.new(f"{prefix}:version" if prefix else "version")
        if anchor is None:
            self.project.append(version_el)
            self.project.append(Text("\n"))
            return version_el

        index = self.project.index(anchor)
        indent = ""
        if index > 0:
            before = self.project.children[index - 1]
            if isinstance(before, Text) and before.is_whitespace:
                indent = before.text
        self.project.insert(index, version_el)
        self.project.insert(index + 1, Text(indent))
        return version_el

    def _remove_version_element(self):
        version_el = self.project.get_child("version")
        if version_el is not None:
            self.project.remove(version_el, with_trailing_text=True)

    # ── Coordinates ──────────────────────────────────────────────────────────

    @property
    def group_id(self) -> Optional[str]:
        """The effective groupId: declared, else the parent's, else ``None``."""
        group_id = self._get_element_value("groupId")
        if group_id is None and self.parent is not None:
            group_id = self.parent.group_id
        return group_id

    @property
    def artifact_id(self) -> Optional[str]:
        return self._get_element_value("artifactId")

    @property
    def packaging(self) -> str:
        packaging = self._get_element_value("packaging")
        return packaging if packaging is not None else DEFAULT_PACKAGING

    # ── Structure ────────────────────────────────────────────────────────────

    @property
    def modules(self) -> list[str]:
        return get_modules(self.project)

    @property
    def profiles(self) -> list[Profile]:
        return get_profiles(self.project)

    @property
    def dependency_management(self) -> Optional[DependencyManagement]:
        return get_dependency_management(self.project)

    @property
    def dependencies(self) -> list[GAV]:
        return get_dependencies(self.project)

    @property
    def build(self) -> Optional[Build]:
        return get_build(self.project)

    @property
    def properties(self) -> list[Property]:
        return get_properties(self.project)

    def snapshot(self) -> PomSnapshot:
        """Copy the effective coordinates and dependency lists into plain data.

        Raises:
            MissingValueError: If the groupId or artifactId is neither declared
                nor inherited.
        """
        group_id = self.group_id
        if group_id is None:
            raise MissingValueError("groupId is neither declared nor inherited from <parent>")
        artifact_id = self.artifact_id
        if artifact_id is None:
            raise MissingValueError("artifactId is not declared")

        parent = self.parent
        dep_management = self.dependency_management
        build = self.build
        return PomSnapshot(
            group_id=group_id,
            artifact_id=artifact_id,
            version=self._version,
            packaging=self.packaging,
            parent_group_id=parent.group_id if parent is not None else None,
            parent_artifact_id=parent.artifact_id if parent is not None else None,
            parent_version=parent.version if parent is not None else None,
            modules=self.modules,
            dependencies=[read_dependency(d.element) for d in self.dependencies],
            dep_management=(
                [read_dependency(d.element) for d in dep_management.dependencies]
                if dep_management is not None else []
            ),
            resources=[r.directory for r in build.resources] if build is not None else [],
        )

    def _get_element_value(self, name: str) -> Optional[str]:
        child = self.project.get_child(name)
        return child.trimmed_text if child is not None else None
