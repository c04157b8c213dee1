"""Plain domain types shared by services (no FastAPI or SQLAlchemy imports)."""
