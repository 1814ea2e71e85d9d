"""Infrastructure adapters (database engine and repositories)."""
