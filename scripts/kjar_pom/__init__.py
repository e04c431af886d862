"""Selective render/merge of kjar Maven pom.xml files."""

from .content_handler import PomContentHandler, decode, merge, render
from .errors import IncompleteIdentityError, MalformedDescriptorError, PluginVersionUnresolved, PomContentError
from .pom_models import GAV, POM, DependencyRef, PluginSpec, RepositoryRef

__all__ = [
    "PomContentHandler", "render", "merge", "decode",
    "PomContentError", "MalformedDescriptorError", "IncompleteIdentityError", "PluginVersionUnresolved",
    "POM", "GAV", "RepositoryRef", "DependencyRef", "PluginSpec",
]
