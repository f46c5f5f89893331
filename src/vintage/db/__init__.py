"""Database schema, initialization and query execution."""
