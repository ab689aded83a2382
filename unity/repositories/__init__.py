"""Hand-written data access functions. Each takes a SQLAlchemy Session as its first argument."""
