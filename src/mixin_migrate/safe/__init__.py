"""Safe custody primitives — keys and output addresses."""

from mixin_migrate.safe.address import MixAddress
from mixin_migrate.safe.keys import Key

__all__ = ["Key", "MixAddress"]
