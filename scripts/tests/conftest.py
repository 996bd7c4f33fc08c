"""Shared test fixtures for the pomversions test suite."""

import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def tmp_pom(tmp_path):
    """Factory fixture that writes a pom.xml to a temp directory and returns the path."""
    def _write(content: str, subdir: str = "") -> Path:
        directory = tmp_path / subdir if subdir else tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        pom = directory / "pom.xml"
        pom.write_text(textwrap.dedent(content), encoding="utf-8")
        return pom
    return _write


@pytest.fixture
def inherited_pom_text():
    """A child POM without its own <version>, inheriting 1.0.0 from its parent."""
    return textwrap.dedent("""\
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


@pytest.fixture
def explicit_pom_text():
    """A child POM that states the same version as its parent explicitly."""
    return textwrap.dedent("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <project xmlns="http://maven.apache.org/POM/4.0.0">
            <modelVersion>4.0.0</modelVersion>
            <parent>
                <groupId>com.example</groupId>
                <artifactId>parent</artifactId>
                <version>1.0.0</version>
            </parent>
            <artifactId>child</artifactId>
            <version>1.0.0</version>
            <packaging>jar</packaging>
        </project>
    """)
