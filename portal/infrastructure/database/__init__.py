"""
Database infrastructure: engine construction, schema definition,
runtime bootstrap and seeding. Supports SQLite and PostgreSQL.
"""
