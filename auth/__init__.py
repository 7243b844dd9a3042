"""
auth — User authentication module.

Provides:
  • JWT access / refresh token issuing & verification
  • Password hashing (bcrypt)
  • Register / Login / Refresh API routes
  • ``get_current_identity`` FastAPI dependency
"""
