"""
connectors — delegated Google credentials.

Handles:
  • Signed OAuth state + cookie fallback
  • Consent URL generation and code → token exchange
  • Per-user credential storage (Fernet-encrypted) & on-demand refresh
  • Revocation on disconnect
"""
