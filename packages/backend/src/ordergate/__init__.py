"""OrderGate — session and ordering backend for multi-restaurant shops.

Authenticates staff users and customers, issues signed session tokens,
gates protected routes, and places orders atomically.
"""

__version__ = "0.1.0"
