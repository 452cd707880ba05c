"""Utility entry points for supplementary obfuscation tooling."""

from .obfuscation_map import create_obfuscation_map, summarise_displacement

__all__ = ["create_obfuscation_map", "summarise_displacement"]
