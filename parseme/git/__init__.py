"""Git integration: tracked-file listing and repository metadata."""

from .files import GitFileLister
from .metadata import GitMetadataCollector
from .runner import GitCommandError, default_runner

__all__ = ["GitCommandError", "GitFileLister", "GitMetadataCollector", "default_runner"]
