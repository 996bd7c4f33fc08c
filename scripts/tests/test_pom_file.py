"""Tests for pom_file.py — effective coordinates and version write-back."""

import io
import textwrap
import xml.etree.ElementTree as ET

import pytest

from pomversions.errors import (
    DuplicateElementError,
    MissingValueError,
    PomParseError,
    StructuralPreconditionError,
)
from pomversions.pom_file import DEFAULT_PACKAGING, MutablePom


def _pom(content: str) -> MutablePom:
    return MutablePom.parse(textwrap.dedent(content))


class TestReadVersion:
    def test_explicit_version(self, explicit_pom_text):
        pom = MutablePom.parse(explicit_pom_text)
        assert pom.version == "1.0.0"
        assert pom.prefer_explicit_version is True

    def test_inherited_version(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        assert pom.version == "1.0.0"
        assert pom.parent_version == "1.0.0"
        assert pom.prefer_explicit_version is False

    def test_no_version_anywhere(self):
        pom = _pom("<project><groupId>g</groupId><artifactId>a</artifactId></project>")
        assert pom.version is None
        assert pom.parent is None
        assert pom.to_xml() == "<project><groupId>g</groupId><artifactId>a</artifactId></project>"

    def test_duplicate_root_version_rejected(self):
        with pytest.raises(DuplicateElementError):
            _pom("<project><version>1</version><version>2</version></project>")

    def test_version_in_nested_element_is_not_the_project_version(self):
        pom = _pom("""\
            <project>
                <artifactId>a</artifactId>
                <build><plugins><plugin><version>9</version></plugin></plugins></build>
            </project>
        """)
        assert pom.version is None

    def test_malformed_pom(self):
        with pytest.raises(PomParseError):
            MutablePom.parse("<project><version>1</project>")


class TestWriteBack:
    def test_round_trip_identity(self, explicit_pom_text, inherited_pom_text):
        assert MutablePom.parse(explicit_pom_text).to_xml() == explicit_pom_text
        assert MutablePom.parse(inherited_pom_text).to_xml() == inherited_pom_text

    def test_idempotent(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        pom.set_version("2.0.0")
        first = pom.to_xml()
        assert pom.to_xml() == first

    def test_explicit_version_kept_when_equal_to_parent(self, explicit_pom_text):
        pom = MutablePom.parse(explicit_pom_text)
        pom.set_version("1.0.0")
        assert pom.to_xml() == explicit_pom_text

    def test_explicit_version_updated(self, explicit_pom_text):
        pom = MutablePom.parse(explicit_pom_text)
        pom.set_version("1.1.0")
        assert pom.to_xml() == explicit_pom_text.replace(
            "<artifactId>child</artifactId>\n    <version>1.0.0</version>",
            "<artifactId>child</artifactId>\n    <version>1.1.0</version>",
        )

    def test_materialize_when_differing_from_parent(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        pom.set_version("2.0.0")
        assert pom.to_xml() == textwrap.dedent("""\
            <?xml version="1.0" encoding="UTF-8"?>
            <project xmlns="http://maven.apache.org/POM/4.0.0">
                <modelVersion>4.0.0</modelVersion>
                <parent>
                    <groupId>com.example</groupId>
                    <artifactId>parent</artifactId>
                    <version>1.0.0</version>
                </parent>
                <artifactId>child</artifactId>
                <version>2.0.0</version>
                <packaging>jar</packaging>
            </project>
        """)

    def test_materialize_before_trailing_artifact_id(self):
        pom = _pom("""\
            <project>
                <parent>
                    <groupId>g</groupId>
                    <artifactId>p</artifactId>
                    <version>1</version>
                </parent>
                <artifactId>c</artifactId>
            </project>
        """)
        pom.set_version("2")
        assert pom.to_xml() == textwrap.dedent("""\
            <project>
                <parent>
                    <groupId>g</groupId>
                    <artifactId>p</artifactId>
                    <version>1</version>
                </parent>
                <version>2</version>
                <artifactId>c</artifactId>
            </project>
        """)

    def test_materialize_into_empty_project(self):
        pom = _pom("<project></project>")
        pom.set_version("1")
        assert pom.to_xml() == "<project><version>1</version>\n</project>"

    def test_materialize_keeps_single_line_layout(self):
        pom = _pom("<project><artifactId>a</artifactId><packaging>jar</packaging></project>")
        pom.set_version("2")
        assert pom.to_xml() == (
            "<project><artifactId>a</artifactId><version>2</version><packaging>jar</packaging></project>"
        )

    def test_materialize_uses_root_namespace_prefix(self):
        pom = _pom(
            '<pom:project xmlns:pom="http://maven.apache.org/POM/4.0.0">'
            "<pom:parent><pom:groupId>g</pom:groupId><pom:artifactId>p</pom:artifactId>"
            "<pom:version>1</pom:version></pom:parent>"
            "<pom:artifactId>c</pom:artifactId></pom:project>"
        )
        pom.set_version("2")
        out = pom.to_xml()
        assert "<pom:version>2</pom:version><pom:artifactId>c</pom:artifactId>" in out
        root = ET.fromstring(out)
        assert root.find("{http://maven.apache.org/POM/4.0.0}version").text == "2"
        assert MutablePom.parse(out).version == "2"

    def test_materialize_then_elide_restores_original(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        pom.set_version("2.0.0")
        assert "<version>2.0.0</version>" in pom.to_xml()
        pom.set_version("1.0.0")
        assert pom.to_xml() == inherited_pom_text

    def test_elide_when_inheritance_preferred(self, explicit_pom_text):
        pom = MutablePom.parse(explicit_pom_text)
        pom.prefer_explicit_version = False
        pom.set_version("1.0.0")
        assert pom.to_xml() == textwrap.dedent("""\
            <?xml version="1.0" encoding="UTF-8"?>
            <project xmlns="http://maven.apache.org/POM/4.0.0">
                <modelVersion>4.0.0</modelVersion>
                <parent>
                    <groupId>com.example</groupId>
                    <artifactId>parent</artifactId>
                    <version>1.0.0</version>
                </parent>
                <artifactId>child</artifactId>
                <packaging>jar</packaging>
            </project>
        """)

    def test_elide_keeps_adjacent_element(self):
        pom = _pom(
            "<project><parent><groupId>g</groupId><artifactId>p</artifactId><version>1</version></parent>"
            "<artifactId>c</artifactId><version>1</version><packaging>pom</packaging></project>"
        )
        pom.prefer_explicit_version = False
        assert pom.to_xml() == (
            "<project><parent><groupId>g</groupId><artifactId>p</artifactId><version>1</version></parent>"
            "<artifactId>c</artifactId><packaging>pom</packaging></project>"
        )

    def test_unchanged_whitespace_inside_version_kept(self):
        text = "<project><artifactId>a</artifactId><version> 1.0 </version></project>"
        assert _pom(text).to_xml() == text

    def test_set_version_rejects_empty(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        with pytest.raises(ValueError):
            pom.set_version("")

    def test_write_to_stream_uses_declared_encoding(self):
        data = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>\n'
            "<project><name>Café</name><artifactId>a</artifactId><version>1</version></project>"
        ).encode("iso-8859-1")
        pom = MutablePom.parse(data)
        pom.set_version("2")
        out = io.BytesIO()
        pom.write(out)
        assert out.getvalue() == data.replace(b"<version>1</version>", b"<version>2</version>")

    def test_read_and_write_file(self, tmp_pom, inherited_pom_text):
        path = tmp_pom(inherited_pom_text)
        pom = MutablePom.read(path.parent)
        pom.set_version("2.0.0")
        pom.write(path)
        assert MutablePom.read(path).version == "2.0.0"
        assert "<version>2.0.0</version>" in path.read_text(encoding="utf-8")


class TestParentVersion:
    def test_set_parent_version(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        pom.set_parent_version("1.1.0")
        assert pom.parent_version == "1.1.0"
        # The project's own effective version does not follow.
        assert pom.version == "1.0.0"
        assert "<version>1.1.0</version>" in pom.to_xml()
        assert "<version>1.0.0</version>" in pom.to_xml()

    def test_parent_and_project_moved_together_stays_inherited(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        pom.set_parent_version("1.1.0")
        pom.set_version("1.1.0")
        assert pom.to_xml() == inherited_pom_text.replace("1.0.0", "1.1.0")

    def test_missing_parent(self):
        pom = _pom("<project><artifactId>a</artifactId></project>")
        with pytest.raises(StructuralPreconditionError):
            pom.set_parent_version("1")

    def test_parent_without_version(self):
        pom = _pom("<project><parent><artifactId>p</artifactId></parent></project>")
        with pytest.raises(StructuralPreconditionError):
            pom.set_parent_version("1")


class TestCoordinates:
    def test_group_id_inherited(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        assert pom.group_id == "com.example"
        assert pom.artifact_id == "child"

    def test_group_id_explicit(self):
        pom = _pom("<project><groupId>own</groupId><parent><groupId>p</groupId></parent></project>")
        assert pom.group_id == "own"

    def test_group_id_missing(self):
        pom = _pom("<project><artifactId>a</artifactId></project>")
        assert pom.group_id is None

    def test_default_packaging(self):
        assert _pom("<project/>").packaging == DEFAULT_PACKAGING == "jar"

    def test_explicit_packaging(self):
        assert _pom("<project><packaging>eclipse-plugin</packaging></project>").packaging == "eclipse-plugin"


class TestStructure:
    def test_modules_deduplicated(self):
        pom = _pom("""\
            <project>
                <modules>
                    <module>a</module>
                    <module>b</module>
                </modules>
                <modules>
                    <module>a</module>
                </modules>
            </project>
        """)
        assert pom.modules == ["a", "b"]

    def test_accessors_recomputed_after_edit(self):
        pom = _pom("<project><properties><x>1</x></properties></project>")
        pom.properties[0].set_value("2")
        assert pom.properties[0].value == "2"

    def test_lists(self):
        pom = _pom("""\
            <project>
                <dependencies>
                    <dependency><groupId>g</groupId><artifactId>d</artifactId></dependency>
                </dependencies>
                <profiles><profile><id>p</id></profile></profiles>
                <build><finalName>f</finalName></build>
            </project>
        """)
        assert [d.artifact_id for d in pom.dependencies] == ["d"]
        assert [p.id for p in pom.profiles] == ["p"]
        assert pom.build.final_name == "f"
        assert pom.dependency_management is None


class TestSnapshot:
    def test_snapshot(self, inherited_pom_text):
        pom = MutablePom.parse(inherited_pom_text)
        pom.set_version("2.0.0")
        snap = pom.snapshot()
        assert snap.group_id == "com.example"
        assert snap.artifact_id == "child"
        assert snap.version == "2.0.0"
        assert snap.packaging == "jar"
        assert snap.parent_artifact_id == "parent"
        assert snap.parent_version == "1.0.0"
        assert snap.dependencies == []
        assert snap.resources == []

    def test_snapshot_missing_group_id(self):
        pom = _pom("<project><artifactId>a</artifactId></project>")
        with pytest.raises(MissingValueError):
            pom.snapshot()

    def test_snapshot_missing_artifact_id(self):
        pom = _pom("<project><groupId>g</groupId></project>")
        with pytest.raises(LookupError):
            pom.snapshot()
