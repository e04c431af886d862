"""Shared test fixtures for the kjar pom.xml content test suite."""

import textwrap
from pathlib import Path

import pytest

from kjar_pom import plugin_config
from kjar_pom.content_handler import PomContentHandler
from kjar_pom.pom_models import GAV, POM, DependencyRef, PluginSpec, RepositoryRef

KIE_VERSION = "7.74.1.Final"


@pytest.fixture(autouse=True)
def _fresh_plugin_spec():
    """Each test resolves the process-wide plugin spec from scratch."""
    plugin_config.reset_plugin_spec()
    yield
    plugin_config.reset_plugin_spec()


@pytest.fixture
def plugin_spec():
    return PluginSpec(version=KIE_VERSION)


@pytest.fixture
def handler(plugin_spec):
    return PomContentHandler(plugin_spec)


@pytest.fixture
def pom_text():
    """Factory fixture that dedents an inline pom.xml literal."""
    def _dedent(content: str) -> str:
        return textwrap.dedent(content)
    return _dedent


@pytest.fixture
def tmp_pom(tmp_path):
    """Factory fixture that writes a pom.xml to a temp directory and returns the path."""
    def _write(content: str) -> Path:
        pom = tmp_path / "pom.xml"
        pom.write_text(textwrap.dedent(content), encoding="utf-8")
        return pom
    return _write


@pytest.fixture
def demo_model():
    """A complete edit model with one repository and two dependencies."""
    return POM(
        name="Demo",
        description="Demo rules project",
        gav=GAV(group_id="org.acme", artifact_id="demo", version="1.0"),
        repositories=[
            RepositoryRef(id="jboss", name="JBoss Public", url="https://repository.jboss.org/nexus/content/groups/public/"),
        ],
        dependencies=[
            DependencyRef(group_id="org.acme", artifact_id="lib", version="1.0"),
            DependencyRef(group_id="org.drools", artifact_id="drools-core"),
        ],
    )


@pytest.fixture
def acme_pom(pom_text):
    """An existing acme pom.xml with content the edit model does not cover."""
    return pom_text("""\
        <?xml version="1.0" encoding="UTF-8"?>
        <project xmlns="http://maven.apache.org/POM/4.0.0" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 http://maven.apache.org/xsd/maven-4.0.0.xsd">
            <modelVersion>4.0.0</modelVersion>
            <groupId>org.acme</groupId>
            <artifactId>demo</artifactId>
            <version>1.0</version>
            <!-- custom settings -->
            <properties>
                <acme.flag>on</acme.flag>
            </properties>
            <dependencies>
                <dependency>
                    <groupId>org.acme</groupId>
                    <artifactId>lib</artifactId>
                    <version>1.0</version>
                </dependency>
            </dependencies>
        </project>
    """)
