"""
Core interfaces (Protocols).

The authorization core depends only on these; SQL, memory and Redis
implementations live in services/ and implementations/.
"""

from .stores import UserStore, ResourceStore, SubmissionChain
from .rate_store import RateStore, WindowState

__all__ = [
    "UserStore",
    "ResourceStore",
    "SubmissionChain",
    "RateStore",
    "WindowState",
]
