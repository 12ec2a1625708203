"""Registry clients that list published versions."""

from .base import RegistryClient
from .maven import MavenRegistryClient

__all__ = [
    "RegistryClient",
    "MavenRegistryClient",
]
