"""
High-level use cases for the Zenshift API.

Each service orchestrates the repository and external adapters (mailer,
billing gateway, OAuth providers) to implement one business area. Routers
call these services instead of touching the database directly.
"""
