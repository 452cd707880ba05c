from .obfuscation_service import LocationObfuscationService, ObfuscationMode, select_mode

__all__ = ["LocationObfuscationService", "ObfuscationMode", "select_mode"]
