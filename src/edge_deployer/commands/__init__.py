"""CLI command modules.

Commands:
- install: install or upgrade the release
- uninstall: selective, confirmation-gated removal
"""

from .lifecycle import install, uninstall

__all__ = [
    "install",
    "uninstall",
]
