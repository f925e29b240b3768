"""Directory domain - Owner, pet, guest, clinic and service lookups"""

__all__ = []
