"""
Module Registry
Serves versioned infrastructure modules straight out of a git monorepo.
"""

__version__ = "0.1.0"
__package_name__ = "module-registry"
