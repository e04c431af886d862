"""Render, merge, and decode kjar pom.xml content.

``render`` writes a brand-new descriptor from an edit model. ``merge`` applies
an edit model onto the original descriptor text, keeping every section the
model does not cover. Both make sure the kie-maven-plugin is declared exactly
once in ``<build><plugins>``.
"""

import logging
from typing import Optional

from . import descriptor_tree
from .descriptor_tree import DescriptorTree, Node, element
from .errors import IncompleteIdentityError
from .plugin_config import resolve_plugin_spec
from .pom_mapping import PROJECT_ORDER, insert_position, to_edit_model, to_tree
from .pom_models import POM, PluginSpec

logger = logging.getLogger(__name__)

# Children of <build>, in the order Maven writes them.
BUILD_ORDER = [
    "sourceDirectory", "scriptSourceDirectory", "testSourceDirectory",
    "outputDirectory", "testOutputDirectory", "extensions", "defaultGoal",
    "resources", "testResources", "directory", "finalName", "filters",
    "pluginManagement", "plugins",
]


def plugin_matches(plugin_el: Node, spec: PluginSpec) -> bool:
    """Check whether a ``<plugin>`` element declares exactly ``spec``.

    All four of groupId, artifactId, version and the extensions flag must be
    equal; a different version is a different plugin.
    """
    extensions = (plugin_el.child_text("extensions") or "false").lower() == "true"
    return (
        plugin_el.child_text("groupId") == spec.group_id
        and plugin_el.child_text("artifactId") == spec.artifact_id
        and plugin_el.child_text("version") == spec.version
        and extensions == spec.extensions
    )


def _plugin_element(parent: Node, spec: PluginSpec) -> Node:
    plugin = element(parent.qualify("plugin"))
    plugin.append(element(plugin.qualify("groupId"), spec.group_id))
    plugin.append(element(plugin.qualify("artifactId"), spec.artifact_id))
    if spec.version is not None:
        plugin.append(element(plugin.qualify("version"), spec.version))
    plugin.append(element(plugin.qualify("extensions"), "true" if spec.extensions else "false"))
    return plugin


def _find_or_create(parent: Node, tag: str, order: list) -> Node:
    child = parent.find(tag)
    if child is None:
        child = element(parent.qualify(tag))
        parent.insert(insert_position(parent, tag, order), child)
    return child


def ensure_plugin(tree: DescriptorTree, spec: PluginSpec) -> bool:
    """Declare ``spec`` in ``<build><plugins>`` unless an identical entry exists.

    Creates ``<build>`` and ``<plugins>`` when missing. Existing plugin
    entries, including other versions of the same plugin, are left alone.

    Args:
        tree: The descriptor to update in place.
        spec: The plugin that must be declared.

    Returns:
        ``True`` if a new ``<plugin>`` entry was appended.
    """
    build = _find_or_create(tree.root, "build", PROJECT_ORDER)
    plugins = _find_or_create(build, "plugins", BUILD_ORDER)
    for plugin_el in plugins.findall("plugin"):
        if plugin_matches(plugin_el, spec):
            logger.debug("%s:%s:%s already declared", spec.group_id, spec.artifact_id, spec.version)
            return False
    plugins.append(_plugin_element(plugins, spec))
    logger.debug("Injected %s:%s:%s", spec.group_id, spec.artifact_id, spec.version)
    return True


class PomContentHandler:
    """Converts between :class:`POM` edit models and pom.xml text.

    Args:
        plugin_spec: The build plugin to inject. Defaults to the process-wide
            spec from :func:`resolve_plugin_spec`.
    """

    def __init__(self, plugin_spec: Optional[PluginSpec] = None):
        self.plugin_spec = plugin_spec if plugin_spec is not None else resolve_plugin_spec()

    def render(self, pom: POM) -> str:
        """Write a new pom.xml for a project that has none yet.

        Raises:
            IncompleteIdentityError: If groupId, artifactId or version is blank.
        """
        missing = pom.gav.missing_fields()
        if missing:
            raise IncompleteIdentityError(missing[0])
        tree = descriptor_tree.new_project_tree()
        to_tree(pom, tree)
        ensure_plugin(tree, self.plugin_spec)
        return descriptor_tree.write(tree)

    def merge(self, pom: POM, original_text: str) -> str:
        """Apply ``pom`` onto an existing pom.xml.

        Only modelVersion, identity, packaging, name, description,
        repositories and dependencies are rewritten; everything else in
        ``original_text`` is kept as it was.

        Args:
            pom: The edited model. Callers validate identity beforehand.
            original_text: The current pom.xml content.

        Returns:
            The merged pom.xml content.

        Raises:
            MalformedDescriptorError: If ``original_text`` is not well-formed XML.
        """
        tree = descriptor_tree.parse(original_text)
        to_tree(pom, tree)
        ensure_plugin(tree, self.plugin_spec)
        return descriptor_tree.write(tree)

    def decode(self, text: str) -> POM:
        """Read the edit model from pom.xml text.

        Raises:
            MalformedDescriptorError: If ``text`` is not well-formed XML.
            IncompleteIdentityError: If an identity field cannot be resolved.
        """
        return to_edit_model(descriptor_tree.parse(text))


def render(pom: POM, plugin_spec: Optional[PluginSpec] = None) -> str:
    """Shortcut for ``PomContentHandler(plugin_spec).render(pom)``."""
    return PomContentHandler(plugin_spec).render(pom)


def merge(pom: POM, original_text: str, plugin_spec: Optional[PluginSpec] = None) -> str:
    """Shortcut for ``PomContentHandler(plugin_spec).merge(pom, original_text)``."""
    return PomContentHandler(plugin_spec).merge(pom, original_text)


def decode(text: str) -> POM:
    """Read the edit model from pom.xml text; no plugin spec is needed."""
    return to_edit_model(descriptor_tree.parse(text))
