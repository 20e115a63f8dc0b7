"""Configuration management for the membership proof system."""

from .config import SystemConfig, ZKPConfig, PaillierConfig, load_config, save_config

__all__ = ['SystemConfig', 'ZKPConfig', 'PaillierConfig', 'load_config', 'save_config']
