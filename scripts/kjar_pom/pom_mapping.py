"""Mapping between the :class:`POM` edit model and a descriptor tree.

``to_tree`` writes the fields the editor owns onto an existing tree and
leaves everything else alone. ``to_edit_model`` reads them back.
"""

import logging

from .descriptor_tree import DescriptorTree, Node, element, local_name
from .errors import IncompleteIdentityError
from .pom_models import GAV, POM, DependencyRef, RepositoryRef

logger = logging.getLogger(__name__)

# Project type marker written into every descriptor this package produces.
PACKAGING = "kjar"

# Order in which Maven writes the children of <project>. New elements are
# placed after the closest preceding sibling in this list.
PROJECT_ORDER = [
    "modelVersion", "parent", "groupId", "artifactId", "version", "packaging",
    "name", "description", "url", "inceptionYear", "organization", "licenses",
    "developers", "contributors", "mailingLists", "prerequisites", "modules",
    "scm", "issueManagement", "ciManagement", "distributionManagement",
    "properties", "dependencyManagement", "dependencies", "repositories",
    "pluginRepositories", "build", "reports", "reporting", "profiles",
]

# Dependency children the edit model manages; anything else is carried over.
_DEPENDENCY_GAV = ("groupId", "artifactId", "version")


def insert_position(parent: Node, tag: str, order: list) -> int:
    """Find where a new ``tag`` child belongs among the existing children of ``parent``.

    Args:
        parent: The element receiving the new child.
        tag: Local name of the new child.
        order: Canonical child order for ``parent``.

    Returns:
        Index just after the last sibling that sorts before ``tag``; if there
        is none, the index of the first sibling that sorts after it; otherwise
        the end of the child list.
    """
    rank = order.index(tag)
    after = None
    before = None
    for i, child in enumerate(parent.children):
        if not child.is_element:
            continue
        name = local_name(child.tag)
        if name not in order:
            continue
        if order.index(name) <= rank:
            after = i + 1
        elif before is None:
            before = i
    if after is not None:
        return after
    if before is not None:
        return before
    return len(parent.children)


def set_child_text(parent: Node, tag: str, value, order: list = PROJECT_ORDER):
    """Set the text of child ``tag``, creating it in canonical position if needed.

    A ``None`` value removes the child. Comments inside an existing child are
    kept; the text around them is replaced.
    """
    child = parent.find(tag)
    if value is None:
        if child is not None:
            parent.remove(child)
        return
    if child is None:
        child = element(parent.qualify(tag))
        parent.insert(insert_position(parent, tag, order), child)
    child.set_leaf_text(_trimmed(value))


def _trimmed(value):
    # Values are read back stripped, so they are written stripped too.
    return value.strip() if value is not None else None


def _leaf_entry(parent: Node, tag: str, fields: list) -> Node:
    """Build a new ``tag`` element with one text child per non-``None`` field."""
    entry = element(parent.qualify(tag))
    for name, value in fields:
        if value is not None:
            entry.append(element(entry.qualify(name), _trimmed(value)))
    return entry


def _replace_section(project: Node, section: str, entries: list):
    """Swap the whole ``section`` element for one holding ``entries``.

    The new section takes the old one's position; an empty ``entries`` list
    removes the section.
    """
    old = project.find(section)
    if not entries:
        if old is not None:
            project.remove(old)
        return
    new = element(project.qualify(section))
    for entry in entries:
        new.append(entry)
    if old is None:
        project.insert(insert_position(project, section, PROJECT_ORDER), new)
    else:
        project.replace(old, new)


def _repository_entries(container: Node, repositories: list) -> list:
    return [
        _leaf_entry(container, "repository", [
            ("id", repo.id),
            ("name", repo.name),
            ("url", repo.url),
        ])
        for repo in repositories
    ]


def _dependency_entries(container: Node, dependencies: list, previous: list) -> list:
    """Build ``<dependency>`` entries, keeping unmodeled children of matching old entries.

    Each old entry is matched at most once, by groupId and artifactId, in
    document order. Its scope, type, classifier, optional flag, exclusions and
    any other child elements are copied onto the new entry.
    """
    unused = list(previous)
    entries = []
    for dep in dependencies:
        entry = _leaf_entry(container, "dependency", [
            ("groupId", dep.group_id),
            ("artifactId", dep.artifact_id),
            ("version", dep.version),
        ])
        for old in unused:
            if (old.child_text("groupId") == _trimmed(dep.group_id)
                    and old.child_text("artifactId") == _trimmed(dep.artifact_id)):
                unused.remove(old)
                for child in old.elements():
                    if local_name(child.tag) not in _DEPENDENCY_GAV:
                        entry.append(child.copy())
                break
        entries.append(entry)
    if unused:
        logger.debug("Dropping %d dependencies not in the edit model", len(unused))
    return entries


def to_tree(pom: POM, tree: DescriptorTree) -> DescriptorTree:
    """Write the edit model onto ``tree`` in place.

    Sets modelVersion, identity, packaging, name and description; replaces the
    ``<repositories>`` and ``<dependencies>`` sections wholesale. All other
    content of ``tree`` is left untouched.

    Args:
        pom: The edit model.
        tree: The tree to update (a fresh project tree or a parsed original).

    Returns:
        The same ``tree``, for chaining.
    """
    project = tree.root
    set_child_text(project, "modelVersion", pom.model_version)
    set_child_text(project, "groupId", pom.gav.group_id)
    set_child_text(project, "artifactId", pom.gav.artifact_id)
    set_child_text(project, "version", pom.gav.version)
    set_child_text(project, "packaging", PACKAGING)
    set_child_text(project, "name", pom.name)
    set_child_text(project, "description", pom.description)

    old_deps = project.find("dependencies")
    previous = old_deps.findall("dependency") if old_deps is not None else []

    _replace_section(
        project, "repositories",
        _repository_entries(project, pom.repositories),
    )
    _replace_section(
        project, "dependencies",
        _dependency_entries(project, pom.dependencies, previous),
    )
    return tree


def _identity_field(project: Node, parent, tag: str) -> str:
    value = project.child_text(tag)
    if not value and parent is not None:
        value = parent.child_text(tag)
    if not value:
        raise IncompleteIdentityError(tag)
    return value


def to_edit_model(tree: DescriptorTree) -> POM:
    """Read the edit model out of a descriptor tree.

    Identity fields missing at the top level fall back to ``<parent>``.
    Repositories and dependencies are read in document order with no
    de-duplication; nothing is inherited from the parent.

    Raises:
        IncompleteIdentityError: If groupId, artifactId or version is declared
            neither on the project nor on its parent.
    """
    project = tree.root
    parent = project.find("parent")
    gav = GAV(
        group_id=_identity_field(project, parent, "groupId"),
        artifact_id=_identity_field(project, parent, "artifactId"),
        version=_identity_field(project, parent, "version"),
    )

    repositories = []
    repos_el = project.find("repositories")
    if repos_el is not None:
        for repo_el in repos_el.findall("repository"):
            repositories.append(RepositoryRef(
                id=repo_el.child_text("id"),
                name=repo_el.child_text("name"),
                url=repo_el.child_text("url"),
            ))

    dependencies = []
    deps_el = project.find("dependencies")
    if deps_el is not None:
        for dep_el in deps_el.findall("dependency"):
            dependencies.append(DependencyRef(
                group_id=dep_el.child_text("groupId"),
                artifact_id=dep_el.child_text("artifactId"),
                version=dep_el.child_text("version"),
            ))

    return POM(
        name=project.child_text("name"),
        description=project.child_text("description"),
        gav=gav,
        model_version=project.child_text("modelVersion"),
        repositories=repositories,
        dependencies=dependencies,
    )
