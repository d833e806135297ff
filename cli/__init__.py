"""
sbctl - Service binding CLI

Commands:
- sbctl render - Project a binding into an application manifest offline
- sbctl mapping - Show where containers and volumes live for a resource
- sbctl version - Show version information
"""

from binding_engine import __version__

__all__ = ["__version__"]
