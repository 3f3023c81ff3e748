"""Translation relay: failover dispatch across HTTP translation endpoints.

Load-balances translation requests over a pool of interchangeable remote
endpoints, with automatic failover, response normalization, a persistent
result cache, and preservation of multi-line text structure.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("translation-relay")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
