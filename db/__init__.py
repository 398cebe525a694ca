"""PostgreSQL connection and start-up helpers."""
