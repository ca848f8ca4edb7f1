"""Keystore persistence."""

from mixin_migrate.keystore.store import Keystore, load_keystore, save_keystore

__all__ = ["Keystore", "load_keystore", "save_keystore"]
