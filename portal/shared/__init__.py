"""
Shared module package.

Contains cross-cutting concerns used across bounded contexts:
- Error handling and mapping
- Security middleware and sessions
- Rate limiting
- Logging configuration
"""
