"""
Scope providers for collection queries.

Available providers:
- faculty: role + faculty + enrollment filtering (default)
- none: no filtering
"""

from .faculty import FacultyScopeProvider, NoScopeProvider

__all__ = ["FacultyScopeProvider", "NoScopeProvider"]
