# deltabuild/config/__init__.py
"""Layered YAML configuration validated by Pydantic."""

from .loader import deep_merge, load_config, load_defaults, load_yaml
from .schema import BuildConfig, FingerprintPolicyName

__all__ = [
    "BuildConfig",
    "FingerprintPolicyName",
    "deep_merge",
    "load_config",
    "load_defaults",
    "load_yaml",
]
