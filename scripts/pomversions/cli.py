"""CLI entry point, multi-module traversal, and file I/O.

Reads a Maven reactor (the root pom.xml and its modules, recursively),
applies version changes through :class:`MutablePom`, and either prints the
resulting POMs (dry-run) or writes them back in place.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from .errors import PomError
from .pom_file import POM_XML, MutablePom


def _load_modules_recursive(
    project_path: Path,
    module_dirs: list[str],
    parent_path: str = "",
    _visited: set = None,
) -> list[tuple[str, MutablePom]]:
    """Recursively read child module POMs, handling nested multi-module structures.

    If a child module itself declares ``<modules>``, those nested modules are
    also read and included in the result. Visited paths are tracked to
    prevent infinite recursion from circular module references.

    Args:
        project_path: Filesystem path to the root project.
        module_dirs: Module directory names from the parent's ``<modules>``.
        parent_path: The relative path prefix for nested modules (e.g. ``"parent-mod"``).
        _visited: Internal set of visited paths (callers should not set this).

    Returns:
        Flat list of ``(relative_dir, pom)`` pairs, depth-first, parents
        before their modules.
    """
    if _visited is None:
        _visited = set()

    result = []
    for mod_dir in module_dirs:
        relative_dir = f"{parent_path}/{mod_dir}" if parent_path else mod_dir
        # Guard against circular references
        abs_path = (project_path / relative_dir).resolve()
        if abs_path in _visited:
            continue
        _visited.add(abs_path)

        child_pom = project_path / relative_dir / POM_XML
        if child_pom.exists():
            child = MutablePom.read(child_pom)
            result.append((relative_dir, child))
            if child.modules:
                result.extend(_load_modules_recursive(
                    project_path, child.modules, relative_dir, _visited
                ))
        else:
            print(f"WARNING: Module '{relative_dir}' has no {POM_XML}, skipping",
                  file=sys.stderr)
    return result


def load_reactor(project_path: Path) -> list[tuple[str, MutablePom]]:
    """Read the root POM of ``project_path`` and all of its modules.

    Returns:
        ``(relative_dir, pom)`` pairs; the root comes first with ``"."``.

    Raises:
        FileNotFoundError: If ``project_path`` has no pom.xml.
        PomError: If any POM cannot be parsed.
    """
    root_pom = project_path / POM_XML
    if not root_pom.exists():
        raise FileNotFoundError(f"No {POM_XML} found at {root_pom}")
    root = MutablePom.read(root_pom)
    reactor = [(".", root)]
    if root.modules:
        reactor.extend(_load_modules_recursive(project_path, root.modules, "", {project_path.resolve()}))
    return reactor


def apply_version(reactor: list[tuple[str, MutablePom]], new_version: str,
                  recursive: bool = True) -> list[str]:
    """Set the version of the first POM in ``reactor`` and propagate it.

    A module whose ``<parent>`` points at a changed project (same groupId,
    artifactId and old version) gets its parent version updated. If the
    module's own version was the same old version, it moves along too, and
    its own modules are then updated in turn.

    Args:
        reactor: ``(relative_dir, pom)`` pairs from :func:`load_reactor`.
        new_version: The version to set on the root project.
        recursive: Whether to touch the modules at all.

    Returns:
        Relative directories of the POMs that were changed.
    """
    root_dir, root = reactor[0]
    changed = {(root.group_id, root.artifact_id, root.version): new_version}
    root.set_version(new_version)
    touched = [root_dir]
    if not recursive:
        return touched

    # <modules> order need not follow the parent relation, so scan until
    # no further module picks up a change.
    pending = list(reactor[1:])
    progress = True
    while progress:
        progress = False
        for relative_dir, pom in list(pending):
            parent = pom.parent
            if parent is None:
                pending.remove((relative_dir, pom))
                continue
            key = (parent.group_id, parent.artifact_id, parent.version)
            if key not in changed:
                continue
            target = changed[key]
            old_version = pom.version
            pom.set_parent_version(target)
            if old_version == key[2]:
                changed[(pom.group_id, pom.artifact_id, old_version)] = target
                pom.set_version(target)
            touched.append(relative_dir)
            pending.remove((relative_dir, pom))
            progress = True
    return touched


def set_version(project_path: Path, new_version: str, recursive: bool = True,
                dry_run: bool = False):
    """Change the project version of a Maven reactor and write the POMs back.

    Args:
        project_path: Directory containing the root pom.xml.
        new_version: The new project version.
        recursive: Also update modules that inherit from a changed project.
        dry_run: If ``True``, prints the changed POMs instead of writing them.
    """
    reactor = load_reactor(project_path)
    touched = set(apply_version(reactor, new_version, recursive))
    _emit(project_path, [(d, pom) for d, pom in reactor if d in touched], dry_run)


def set_parent_version(project_path: Path, new_version: str, dry_run: bool = False):
    """Change the ``<parent><version>`` of the root POM only."""
    pom = MutablePom.read(project_path / POM_XML)
    pom.set_parent_version(new_version)
    _emit(project_path, [(".", pom)], dry_run)


def show(project_path: Path):
    """Print the effective coordinates and structure of the root POM."""
    pom = MutablePom.read(project_path / POM_XML)
    print(f"groupId:    {pom.group_id or '-'}")
    print(f"artifactId: {pom.artifact_id or '-'}")
    print(f"version:    {pom.version or '-'}"
          + ("" if pom.prefer_explicit_version else " (inherited)"))
    print(f"packaging:  {pom.packaging}")
    if pom.parent is not None:
        print(f"parent:     {pom.parent}")
    for module in pom.modules:
        print(f"module:     {module}")
    for profile in pom.profiles:
        print(f"profile:    {profile.id}")
    for dep in pom.dependencies:
        print(f"dependency: {dep}")


def _emit(project_path: Path, poms: list[tuple[str, MutablePom]], dry_run: bool):
    for relative_dir, pom in poms:
        path = project_path / relative_dir / POM_XML
        if dry_run:
            print("=" * 60)
            print(f"{relative_dir}/{POM_XML}")
            print("=" * 60)
            print(pom.to_xml())
        else:
            _write(path, pom)


def _write(path: Path, pom: MutablePom):
    """Write a POM back to its file and report it.

    Args:
        path: Filesystem path to write to.
        pom: The POM to serialize.
    """
    pom.write(path)
    print(f"  ✓ {path}")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pomversions",
        description="Inspect and change Maven project versions without reformatting pom.xml"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show_p = sub.add_parser("show", help="Print effective coordinates of a project")
    show_p.add_argument("project", type=Path, help="Path to Maven project root")

    set_p = sub.add_parser("set-version", help="Change the project version")
    set_p.add_argument("project", type=Path, help="Path to Maven project root")
    set_p.add_argument("version", help="New project version")
    set_p.add_argument("--no-recursive", dest="recursive", action="store_false",
                       help="Only change the root pom.xml")
    set_p.add_argument("--dry-run", "-n", action="store_true", help="Print output without writing files")

    parent_p = sub.add_parser("set-parent-version", help="Change the <parent> version of a project")
    parent_p.add_argument("project", type=Path, help="Path to Maven project root")
    parent_p.add_argument("version", help="New parent version")
    parent_p.add_argument("--dry-run", "-n", action="store_true", help="Print output without writing files")

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None):
    """CLI entry point. Parses arguments and dispatches to the subcommand."""
    args = parse_args(argv)
    try:
        if args.command == "show":
            show(args.project)
        elif args.command == "set-version":
            set_version(args.project, args.version, args.recursive, args.dry_run)
        else:
            set_parent_version(args.project, args.version, args.dry_run)
    except (PomError, FileNotFoundError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
