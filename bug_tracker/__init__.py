"""Bug Tracker - REST backend.

A small service for registering users, creating projects and tracking bugs
reported against them.

Core concepts:
- Accounts are identified by email and carry a role (Member | Tester).
- Access is granted by short-lived signed JWTs; nothing session-like is stored.
- Projects own bugs by reference (bugs point at a project id).
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
