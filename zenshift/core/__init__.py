"""
Core utilities shared across the Zenshift API.

Configuration, error taxonomy, logging setup, password hashing, the mailer
and small helpers live here so that services and routers do not read
os.environ or talk to SMTP directly.
"""
