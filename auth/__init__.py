"""
auth — identity gate.

Provides:
  • Firebase ID token verification
  • ``get_current_user_id`` FastAPI dependency
  • Profile sync routes (signup / Google sign-in)
"""
