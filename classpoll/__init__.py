"""
ClassPoll+ portal core: remote-store sync, role-scoped views, optimistic mutations
and the derived notification feed.
"""

__version__ = "0.1.0"
