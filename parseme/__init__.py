"""parseme: context bundles for JavaScript and TypeScript projects."""

from __future__ import annotations

from .config import ConfigError, ConfigValidationError, ParsemeConfig, load_config
from .orchestrator import GenerationResult, Orchestrator
from .repo_scanner import DiscoveryError

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "DiscoveryError",
    "GenerationResult",
    "Orchestrator",
    "ParsemeConfig",
    "load_config",
]

__version__ = "0.1.0"
