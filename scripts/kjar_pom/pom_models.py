"""Edit-model data classes.

Pure data structures for the subset of a pom.xml that the project editor
understands. No XML handling or imports from other kjar_pom modules.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional

DEFAULT_MODEL_VERSION = "4.0.0"


@dataclass
class GAV:
    """Project identity: the ``(groupId, artifactId, version)`` triple.

    Attributes:
        group_id: Maven groupId (e.g. ``org.acme``).
        artifact_id: Maven artifactId (e.g. ``demo``).
        version: Project version (e.g. ``1.0``).
    """
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None

    def missing_fields(self) -> list:
        """Return the element names of identity fields that are unset or blank."""
        missing = []
        for tag, value in (
            ("groupId", self.group_id),
            ("artifactId", self.artifact_id),
            ("version", self.version),
        ):
            if not value or not value.strip():
                missing.append(tag)
        return missing


@dataclass
class RepositoryRef:
    """A ``<repository>`` entry.

    Attributes:
        id: Repository ``<id>``.
        name: Human-readable ``<name>``.
        url: Repository ``<url>``.
    """
    id: Optional[str]
    name: Optional[str]
    url: Optional[str]


@dataclass
class DependencyRef:
    """A ``<dependency>`` entry as the editor sees it.

    Scope, classifier, type, optional flag and exclusions are not part of the
    edit model; they stay in the document.

    Attributes:
        group_id: Dependency groupId.
        artifact_id: Dependency artifactId.
        version: Explicit version, or ``None`` if managed elsewhere.
    """
    group_id: Optional[str]
    artifact_id: Optional[str]
    version: Optional[str] = None


@dataclass
class POM:
    """The editable view of a pom.xml.

    Attributes:
        name: ``<name>`` element, or ``None`` to omit it.
        description: ``<description>`` element, or ``None`` to omit it.
        gav: Project identity.
        model_version: ``<modelVersion>`` value.
        repositories: Ordered ``<repositories>`` entries.
        dependencies: Ordered ``<dependencies>`` entries.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    gav: GAV = field(default_factory=GAV)
    model_version: Optional[str] = DEFAULT_MODEL_VERSION
    repositories: list = field(default_factory=list)
    dependencies: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "POM":
        """Build a POM from the structure produced by :meth:`to_dict`."""
        gav = data.get("gav") or {}
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            gav=GAV(
                group_id=gav.get("group_id"),
                artifact_id=gav.get("artifact_id"),
                version=gav.get("version"),
            ),
            model_version=data.get("model_version", DEFAULT_MODEL_VERSION),
            repositories=[
                RepositoryRef(id=r.get("id"), name=r.get("name"), url=r.get("url"))
                for r in data.get("repositories") or []
            ],
            dependencies=[
                DependencyRef(
                    group_id=d.get("group_id"),
                    artifact_id=d.get("artifact_id"),
                    version=d.get("version"),
                )
                for d in data.get("dependencies") or []
            ],
        )


@dataclass(frozen=True)
class PluginSpec:
    """The build plugin every kjar project must declare.

    Compared by the full tuple, so two specs differing only in version are
    different plugins.

    Attributes:
        group_id: Plugin groupId.
        artifact_id: Plugin artifactId.
        version: Plugin version, or ``None`` when it could not be resolved.
        extensions: Value of the ``<extensions>`` flag.
    """
    group_id: str = "org.kie"
    artifact_id: str = "kie-maven-plugin"
    version: Optional[str] = None
    extensions: bool = True
