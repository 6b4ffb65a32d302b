"""Construct-X Edge deployer.

Installs, upgrades and tears down the Construct-X Edge Helm release.
"""

__version__ = "0.1.0"
