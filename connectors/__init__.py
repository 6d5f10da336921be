"""
connectors — OAuth integration with Nuvemshop.

Handles:
  • authorization-URL generation
  • callback handling (code → token exchange)
  • per-store token storage & refresh
  • Fernet encryption of tokens at rest

The provider client is a subclass of BaseConnector.
"""
