"""Tests for pom_mapping.py: edit model to tree and back."""

import pytest

from kjar_pom.descriptor_tree import element, new_project_tree, parse, write
from kjar_pom.errors import IncompleteIdentityError
from kjar_pom.pom_mapping import (
    PACKAGING, PROJECT_ORDER,
    insert_position, set_child_text, to_edit_model, to_tree,
)
from kjar_pom.pom_models import GAV, POM, DependencyRef, RepositoryRef


def _tags(node):
    return [c.tag for c in node.elements()]


class TestInsertPosition:
    def test_after_preceding_sibling(self):
        tree = parse("<project><groupId/><version/><build/></project>")
        assert insert_position(tree.root, "artifactId", PROJECT_ORDER) == 1

    def test_before_following_sibling_when_nothing_precedes(self):
        tree = parse("<project><!-- c --><version/></project>")
        assert insert_position(tree.root, "groupId", PROJECT_ORDER) == 1

    def test_unknown_siblings_ignored(self):
        tree = parse("<project><custom/></project>")
        assert insert_position(tree.root, "groupId", PROJECT_ORDER) == 1


class TestSetChildText:
    def test_updates_existing_in_place(self):
        tree = parse("<project><version>1.0</version><groupId>g</groupId></project>")
        set_child_text(tree.root, "version", "1.1")
        assert _tags(tree.root) == ["version", "groupId"]
        assert tree.root.child_text("version") == "1.1"

    def test_none_removes(self):
        tree = parse("<project><name>n</name></project>")
        set_child_text(tree.root, "name", None)
        assert tree.root.find("name") is None

    def test_empty_string_kept_as_empty_element(self):
        tree = new_project_tree()
        set_child_text(tree.root, "description", "")
        assert tree.root.child_text("description") == ""
        assert "<description/>" in write(tree)


class TestToTree:
    def test_fresh_tree_in_maven_order(self, demo_model):
        tree = to_tree(demo_model, new_project_tree())
        assert _tags(tree.root) == [
            "modelVersion", "groupId", "artifactId", "version", "packaging",
            "name", "description", "dependencies", "repositories",
        ]
        assert tree.root.child_text("packaging") == PACKAGING

    def test_repositories_fully_replaced(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <repositories>
                    <repository>
                        <id>old</id>
                        <url>https://old.example.com</url>
                        <snapshots><enabled>false</enabled></snapshots>
                    </repository>
                </repositories>
            </project>
        """))
        pom = POM(
            gav=GAV("g", "a", "1"),
            repositories=[RepositoryRef(id="old", name="Old", url="https://new.example.com")],
        )
        to_tree(pom, tree)
        repos = tree.root.find("repositories").findall("repository")
        assert len(repos) == 1
        assert repos[0].child_text("url") == "https://new.example.com"
        assert repos[0].find("snapshots") is None

    def test_dependencies_replaced_and_extras_carried(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <dependencies>
                    <dependency>
                        <groupId>junit</groupId>
                        <artifactId>junit</artifactId>
                        <version>4.12</version>
                        <scope>test</scope>
                    </dependency>
                    <dependency>
                        <groupId>org.old</groupId>
                        <artifactId>gone</artifactId>
                    </dependency>
                </dependencies>
            </project>
        """))
        pom = POM(
            gav=GAV("g", "a", "1"),
            dependencies=[DependencyRef("junit", "junit", "4.13.2")],
        )
        to_tree(pom, tree)
        deps = tree.root.find("dependencies").findall("dependency")
        assert len(deps) == 1
        assert deps[0].child_text("version") == "4.13.2"
        assert deps[0].child_text("scope") == "test"

    def test_empty_lists_remove_sections(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <dependencies><dependency><groupId>x</groupId></dependency></dependencies>
                <repositories><repository><id>r</id></repository></repositories>
            </project>
        """))
        to_tree(POM(gav=GAV("g", "a", "1")), tree)
        assert tree.root.find("dependencies") is None
        assert tree.root.find("repositories") is None

    def test_other_sections_untouched(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <properties><p>1</p></properties>
                <build><finalName>custom</finalName></build>
            </project>
        """))
        properties = tree.root.find("properties")
        build = tree.root.find("build")
        to_tree(POM(gav=GAV("g", "a", "1")), tree)
        assert tree.root.find("properties") is properties
        assert tree.root.find("build") is build
        assert build.child_text("finalName") == "custom"

    def test_version_without_value_omitted(self):
        tree = to_tree(
            POM(gav=GAV("g", "a", "1"), dependencies=[DependencyRef("org.drools", "drools-core")]),
            new_project_tree(),
        )
        dep = tree.root.find("dependencies").find("dependency")
        assert dep.find("version") is None

    def test_prefixed_document_gets_prefixed_elements(self):
        tree = parse('<m:project xmlns:m="http://maven.apache.org/POM/4.0.0"/>')
        to_tree(POM(gav=GAV("g", "a", "1"), dependencies=[DependencyRef("x", "y")]), tree)
        assert tree.root.find("packaging").tag == "m:packaging"
        assert tree.root.find("dependencies").find("dependency").tag == "m:dependency"


class TestToEditModel:
    def test_reads_all_fields(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <modelVersion>4.0.0</modelVersion>
                <groupId>org.acme</groupId>
                <artifactId>demo</artifactId>
                <version>1.0</version>
                <name>Demo</name>
                <description>Rules</description>
                <repositories>
                    <repository><id>r1</id><name>R1</name><url>https://r1</url></repository>
                </repositories>
                <dependencies>
                    <dependency><groupId>a</groupId><artifactId>b</artifactId><version>1</version></dependency>
                    <dependency><groupId>a</groupId><artifactId>b</artifactId><version>1</version></dependency>
                </dependencies>
            </project>
        """))
        pom = to_edit_model(tree)
        assert pom.name == "Demo"
        assert pom.description == "Rules"
        assert pom.model_version == "4.0.0"
        assert pom.gav == GAV("org.acme", "demo", "1.0")
        assert pom.repositories == [RepositoryRef("r1", "R1", "https://r1")]
        assert len(pom.dependencies) == 2

    def test_parent_fallback(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <parent>
                    <groupId>com.example</groupId>
                    <artifactId>parent</artifactId>
                    <version>2.0</version>
                </parent>
                <artifactId>child</artifactId>
            </project>
        """))
        gav = to_edit_model(tree).gav
        assert gav == GAV("com.example", "child", "2.0")

    def test_parent_lists_not_inherited(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <parent>
                    <groupId>com.example</groupId>
                    <artifactId>parent</artifactId>
                    <version>2.0</version>
                    <dependencies><dependency><groupId>x</groupId></dependency></dependencies>
                </parent>
                <artifactId>child</artifactId>
            </project>
        """))
        assert to_edit_model(tree).dependencies == []

    def test_missing_artifact_id(self, pom_text):
        tree = parse(pom_text("""\
            <project>
                <parent>
                    <groupId>com.example</groupId>
                    <version>2.0</version>
                </parent>
            </project>
        """))
        with pytest.raises(IncompleteIdentityError) as exc:
            to_edit_model(tree)
        assert exc.value.field == "artifactId"

    def test_missing_without_parent(self):
        with pytest.raises(IncompleteIdentityError) as exc:
            to_edit_model(parse("<project><artifactId>a</artifactId><version>1</version></project>"))
        assert exc.value.field == "groupId"


class TestRoundTrip:
    def test_decode_of_to_tree_reproduces_model(self, demo_model):
        tree = parse(write(to_tree(demo_model, new_project_tree())))
        assert to_edit_model(tree) == demo_model

    def test_empty_description_survives(self):
        pom = POM(description="", gav=GAV("g", "a", "1"))
        tree = parse(write(to_tree(pom, new_project_tree())))
        assert to_edit_model(tree) == pom

    def test_element_helper_has_no_whitespace(self):
        node = element("x", "y")
        assert node.text == "y"
        assert node.tail is None
