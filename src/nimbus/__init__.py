"""Nimbus — weather lookups behind bearer-token authentication.

The backend registers and logs in identities, guards the weather
passthrough with signed tokens, and the client keeps a device-local
session that survives restarts.
"""

__version__ = "0.1.0"
