"""
Infrastructure adapters for the brokerage bounded context.

Each adapter implements a domain port (ABC) on top of a
SQLAlchemy engine and the shared table definitions.
"""
