"""transnorm — translation payload normalizer with change-aware caching."""

from transnorm.version import __version__

__all__ = ["__version__"]
