"""Resolution of the kie-maven-plugin declaration injected into every pom.xml.

The plugin version ships as a packaged ``.properties`` resource. It is read
once per process; afterwards every caller gets the same frozen
:class:`PluginSpec`.
"""

import logging
import os
import re
import threading
from importlib import resources

from .errors import PluginVersionUnresolved
from .pom_models import PluginSpec

logger = logging.getLogger(__name__)

PLUGIN_VERSION_RESOURCE = "kie-plugin-version.properties"
PLUGIN_VERSION_PROPERTY = "kie_plugin_version"
# Overrides the packaged version when set (e.g. for snapshot builds).
PLUGIN_VERSION_ENV = "KJAR_POM_PLUGIN_VERSION"

_SEPARATOR_RE = re.compile(r"\s*[=:]\s*|\s+")

_lock = threading.Lock()
_resolved = None


def parse_properties(text: str) -> dict:
    """Parse Java ``.properties`` content into a dict.

    Supports ``key=value``, ``key: value`` and ``key value`` lines, ``#`` and
    ``!`` comments, and backslash line continuations. Unicode escapes are not
    decoded.

    Args:
        text: The properties file content.

    Returns:
        Mapping of keys to their (left-stripped) values, last one wins.
    """
    properties = {}
    logical = ""
    for raw in text.splitlines():
        line = raw.lstrip() if not logical else raw.strip()
        if not logical and (not line or line[0] in "#!"):
            continue
        if line.endswith("\\") and not line.endswith("\\\\"):
            logical += line[:-1]
            continue
        logical += line
        parts = _SEPARATOR_RE.split(logical, maxsplit=1)
        key = parts[0]
        value = parts[1] if len(parts) > 1 else ""
        properties[key] = value.rstrip()
        logical = ""
    return properties


def read_plugin_version(resource: str = PLUGIN_VERSION_RESOURCE) -> str:
    """Read the kie-maven-plugin version from the packaged properties resource.

    Raises:
        PluginVersionUnresolved: If the resource is missing, unreadable, or
            does not define ``kie_plugin_version``.
    """
    try:
        text = resources.files(__package__).joinpath(resource).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise PluginVersionUnresolved(f"Cannot read {resource}: {err}") from err
    version = parse_properties(text).get(PLUGIN_VERSION_PROPERTY)
    if not version:
        raise PluginVersionUnresolved(f"{PLUGIN_VERSION_PROPERTY} is not set in {resource}")
    return version


def _load_plugin_spec() -> PluginSpec:
    version = os.environ.get(PLUGIN_VERSION_ENV)
    if not version:
        try:
            version = read_plugin_version()
        except PluginVersionUnresolved as err:
            logger.warning("kie-maven-plugin version unresolved, injecting it without one: %s", err)
            version = None
    logger.debug("Resolved kie-maven-plugin version %s", version)
    return PluginSpec(version=version)


def resolve_plugin_spec() -> PluginSpec:
    """Return the process-wide :class:`PluginSpec`, resolving it on first use.

    Safe to call from several threads; the version is looked up at most once.
    """
    global _resolved
    if _resolved is None:
        with _lock:
            if _resolved is None:
                _resolved = _load_plugin_spec()
    return _resolved


def reset_plugin_spec():
    """Forget the resolved spec so the next call re-reads it. Used by tests."""
    global _resolved
    with _lock:
        _resolved = None
