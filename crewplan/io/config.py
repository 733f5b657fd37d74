"""Configuration loading utility."""

from crewplan.config import DEFAULT_CONFIG, EngineConfig, config_from_dict, load_config

__all__ = ["DEFAULT_CONFIG", "EngineConfig", "config_from_dict", "load_config"]
