"""
Infrastructure module exports.

Configuration and bootstrap for the relay backends.
"""

from .config import InfraConfig, get_config, TransportBackendType, TTSBackendType
from .bootstrap import RelayBootstrap, bootstrap_relay

__all__ = [
    "InfraConfig",
    "get_config",
    "TransportBackendType",
    "TTSBackendType",
    "RelayBootstrap",
    "bootstrap_relay",
]
