"""
Configuration management for the test harness.

This module handles loading and validating the server location, client
identity, event stream and output settings used by a harness run.
"""

from .loader import (
    ClientConfig,
    ConfigLoader,
    EventsConfig,
    HarnessConfig,
    LoggingConfig,
    OutputConfig,
    RpcConfig,
    ServerConfig,
    load_config,
)

__all__ = [
    "ClientConfig",
    "ConfigLoader",
    "EventsConfig",
    "HarnessConfig",
    "LoggingConfig",
    "OutputConfig",
    "RpcConfig",
    "ServerConfig",
    "load_config",
]
