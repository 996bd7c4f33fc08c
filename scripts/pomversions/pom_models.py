"""Maven POM views and snapshots.

Views (``GAV``, ``Property``, ``Plugin``, ``Resource``, ``Build``,
``DependencyManagement``, ``Profile``) wrap one element of a parsed pom.xml
and read from it on every access, so they always reflect the current state of
the tree. They hold no data of their own and are created fresh by each
accessor call.

Snapshots (``Dependency``, ``PomSnapshot``) are plain data copied out of the
tree for code that should not deal with XML, such as packaging.
"""

from dataclasses import dataclass, field
from typing import Optional

from .errors import StructuralPreconditionError
from .xml_tree import Element

# groupId Maven assumes for a <plugin> that doesn't declare one.
DEFAULT_PLUGIN_GROUP_ID = "org.apache.maven.plugins"


def _text(el: Element, tag: str) -> Optional[str]:
    """Extract the trimmed text content of a direct child element.

    Args:
        el: Parent element.
        tag: Local name of the child element.

    Returns:
        Stripped text of the first matching child (possibly empty), or
        ``None`` if there is no such child.
    """
    child = el.get_child(tag)
    return child.trimmed_text if child is not None else None


def _nested(el: Element, container: str, item: str) -> list[Element]:
    """Collect ``<container><item>`` elements across every ``<container>`` block."""
    return [child for block in el.get_children(container) for child in block.get_children(item)]


def _unique(values) -> list:
    return list(dict.fromkeys(values))


@dataclass(frozen=True)
class GAV:
    """groupId/artifactId/version of a project, parent, dependency or plugin.

    Only the values written in the wrapped element are reported; nothing is
    inherited here.
    """
    element: Element

    @property
    def group_id(self) -> Optional[str]:
        return _text(self.element, "groupId")

    @property
    def artifact_id(self) -> Optional[str]:
        return _text(self.element, "artifactId")

    @property
    def version(self) -> Optional[str]:
        return _text(self.element, "version")

    def set_version(self, version: str):
        """Replace the text of the existing ``<version>`` child.

        Raises:
            StructuralPreconditionError: If the element has no ``<version>``.
        """
        version_el = self.element.get_child("version")
        if version_el is None:
            raise StructuralPreconditionError(
                f"<{self.element.name}> {self.group_id}:{self.artifact_id} has no <version>"
            )
        version_el.set_text(version)

    def __str__(self):
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(frozen=True)
class Property:
    """One child of a ``<properties>`` block, e.g. ``<java.version>21</java.version>``."""
    element: Element

    @property
    def name(self) -> str:
        return self.element.local_name

    @property
    def value(self) -> str:
        return self.element.trimmed_text

    def set_value(self, value: str):
        self.element.set_text(value)


def get_properties(el: Element) -> list[Property]:
    """Return every property of every ``<properties>`` block, in declaration order."""
    return [Property(child) for block in el.get_children("properties") for child in block.elements()]


def get_dependencies(el: Element) -> list[GAV]:
    """Return every ``<dependencies><dependency>``, in declaration order, duplicates kept."""
    return [GAV(dep) for dep in _nested(el, "dependencies", "dependency")]


def get_modules(el: Element) -> list[str]:
    """Return the ``<modules><module>`` names across all blocks.

    Duplicates are collapsed, keeping the position of the first occurrence.
    """
    return _unique(module.trimmed_text for module in _nested(el, "modules", "module"))


@dataclass(frozen=True)
class DependencyManagement:
    """The ``<dependencyManagement>`` section."""
    element: Element

    @property
    def dependencies(self) -> list[GAV]:
        return get_dependencies(self.element)


def get_dependency_management(el: Element) -> Optional[DependencyManagement]:
    child = el.get_child("dependencyManagement")
    return DependencyManagement(child) if child is not None else None


def _parse_plugin_config(config_el: Optional[Element]) -> dict:
    """Recursively flatten a plugin ``<configuration>`` block into a Python dict.

    Nested elements with children become sub-dicts or lists of strings.
    Leaf elements become string values keyed by their tag name.

    Args:
        config_el: The ``<configuration>`` element, or ``None``.

    Returns:
        A dict mapping tag names to string values, lists, or nested dicts.
        Returns an empty dict if config_el is ``None``.
    """
    if config_el is None:
        return {}
    result = {}
    for child in config_el.elements():
        tag = child.local_name
        if child.elements():
            # Nested: collect as list of text items or sub-dict
            items = [sub.trimmed_text for sub in child.elements() if sub.trimmed_text]
            if items:
                result[tag] = items
            else:
                result[tag] = _parse_plugin_config(child)
        elif child.trimmed_text:
            result[tag] = child.trimmed_text
    return result


@dataclass(frozen=True)
class Plugin:
    """A ``<plugin>`` element of ``<build>`` or ``<pluginManagement>``."""
    element: Element

    @property
    def gav(self) -> GAV:
        return GAV(self.element)

    @property
    def group_id(self) -> str:
        return self.gav.group_id or DEFAULT_PLUGIN_GROUP_ID

    @property
    def artifact_id(self) -> Optional[str]:
        return self.gav.artifact_id

    @property
    def version(self) -> Optional[str]:
        return self.gav.version

    @property
    def dependencies(self) -> list[GAV]:
        return get_dependencies(self.element)

    @property
    def configuration(self) -> dict:
        return _parse_plugin_config(self.element.get_child("configuration"))


@dataclass(frozen=True)
class Resource:
    """A ``<resource>`` or ``<testResource>`` element."""
    element: Element

    @property
    def directory(self) -> Optional[str]:
        return _text(self.element, "directory")

    @property
    def target_path(self) -> Optional[str]:
        return _text(self.element, "targetPath")

    @property
    def filtering(self) -> bool:
        return (_text(self.element, "filtering") or "").lower() == "true"

    @property
    def includes(self) -> list[str]:
        return [inc.trimmed_text for inc in _nested(self.element, "includes", "include")]

    @property
    def excludes(self) -> list[str]:
        return [exc.trimmed_text for exc in _nested(self.element, "excludes", "exclude")]


@dataclass(frozen=True)
class Build:
    """The ``<build>`` section of a project or profile."""
    element: Element

    @property
    def final_name(self) -> Optional[str]:
        return _text(self.element, "finalName")

    @property
    def plugins(self) -> list[Plugin]:
        return [Plugin(p) for p in _nested(self.element, "plugins", "plugin")]

    @property
    def plugin_management(self) -> list[Plugin]:
        return [
            Plugin(p)
            for pm in self.element.get_children("pluginManagement")
            for p in _nested(pm, "plugins", "plugin")
        ]

    @property
    def resources(self) -> list[Resource]:
        return [Resource(r) for r in _nested(self.element, "resources", "resource")]

    @property
    def test_resources(self) -> list[Resource]:
        return [Resource(r) for r in _nested(self.element, "testResources", "testResource")]


def get_build(el: Element) -> Optional[Build]:
    child = el.get_child("build")
    return Build(child) if child is not None else None


@dataclass(frozen=True)
class Profile:
    """A ``<profile>`` element.

    A profile can carry most of what a project carries: modules, properties,
    dependencies, dependency management and a build section.
    """
    element: Element

    @property
    def id(self) -> Optional[str]:
        return _text(self.element, "id")

    @property
    def activation(self) -> dict:
        """Parsed activation conditions (activeByDefault, jdk, property, os)."""
        activation = {}
        act_el = self.element.get_child("activation")
        if act_el is None:
            return activation
        by_default = _text(act_el, "activeByDefault")
        if by_default:
            activation["activeByDefault"] = by_default.lower() == "true"
        jdk = _text(act_el, "jdk")
        if jdk:
            activation["jdk"] = jdk
        prop_el = act_el.get_child("property")
        if prop_el is not None:
            activation["property"] = {
                "name": _text(prop_el, "name"),
                "value": _text(prop_el, "value"),
            }
        os_el = act_el.get_child("os")
        if os_el is not None:
            activation["os"] = {
                "name": _text(os_el, "name"),
                "family": _text(os_el, "family"),
            }
        return activation

    @property
    def modules(self) -> list[str]:
        return get_modules(self.element)

    @property
    def properties(self) -> list[Property]:
        return get_properties(self.element)

    @property
    def dependencies(self) -> list[GAV]:
        return get_dependencies(self.element)

    @property
    def dependency_management(self) -> Optional[DependencyManagement]:
        return get_dependency_management(self.element)

    @property
    def build(self) -> Optional[Build]:
        return get_build(self.element)


def get_profiles(el: Element) -> list[Profile]:
    """Return every ``<profiles><profile>``, in declaration order."""
    return [Profile(p) for p in _nested(el, "profiles", "profile")]


@dataclass
class Dependency:
    """A Maven ``<dependency>`` element, copied out of the tree.

    Attributes:
        group_id: Maven groupId (e.g. ``org.springframework.boot``).
        artifact_id: Maven artifactId (e.g. ``spring-boot-starter-web``).
        version: Explicit version string, or ``None`` if managed elsewhere.
        scope: Maven scope: compile, provided, runtime, test, system or import.
        classifier: Optional classifier (e.g. ``sources``, ``tests``).
        dep_type: Optional packaging type (e.g. ``pom`` for BOM imports).
        optional: Whether the dependency is marked ``<optional>true</optional>``.
        exclusions: List of ``(groupId, artifactId)`` tuples to exclude.
    """
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    scope: str = "compile"
    classifier: Optional[str] = None
    dep_type: Optional[str] = None
    optional: bool = False
    exclusions: list = field(default_factory=list)


def read_dependency(dep_el: Element) -> Dependency:
    """Copy a ``<dependency>`` element into a :class:`Dependency`.

    Args:
        dep_el: The ``<dependency>`` element.

    Returns:
        A populated Dependency instance. A missing scope reads as ``compile``.
    """
    optional_text = _text(dep_el, "optional")
    exclusions = []
    for ex in _nested(dep_el, "exclusions", "exclusion"):
        eg = _text(ex, "groupId")
        ea = _text(ex, "artifactId")
        if eg and ea:
            exclusions.append((eg, ea))
    return Dependency(
        group_id=_text(dep_el, "groupId") or "",
        artifact_id=_text(dep_el, "artifactId") or "",
        version=_text(dep_el, "version"),
        scope=_text(dep_el, "scope") or "compile",
        classifier=_text(dep_el, "classifier"),
        dep_type=_text(dep_el, "type"),
        optional=bool(optional_text) and optional_text.lower() == "true",
        exclusions=exclusions,
    )


@dataclass
class PomSnapshot:
    """Effective coordinates and structure of one pom.xml, as plain data.

    Attributes:
        group_id: Effective groupId (inherited from the parent if not declared).
        artifact_id: Maven artifactId.
        version: Effective version (inherited from the parent if not declared).
        packaging: Packaging type, ``jar`` unless declared.
        parent_group_id: Parent POM groupId, if any.
        parent_artifact_id: Parent POM artifactId, if any.
        parent_version: Parent POM version, if any.
        modules: Module directory names from ``<modules>``, deduplicated.
        dependencies: Direct ``<dependencies>`` list.
        dep_management: ``<dependencyManagement>`` dependencies.
        resources: ``<build><resources>`` directories.
    """
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    packaging: str = "jar"
    parent_group_id: Optional[str] = None
    parent_artifact_id: Optional[str] = None
    parent_version: Optional[str] = None
    modules: list = field(default_factory=list)
    dependencies: list = field(default_factory=list)
    dep_management: list = field(default_factory=list)
    resources: list = field(default_factory=list)
