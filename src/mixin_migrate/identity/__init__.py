"""Receiver identity lookup."""

from mixin_migrate.identity.lookup import User, UserLookupClient, check_receiver

__all__ = ["User", "UserLookupClient", "check_receiver"]
