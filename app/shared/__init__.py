"""
Shared module package.

Contains cross-cutting concerns used across bounded contexts:
- Error handling and mapping
- Caller identity
- Rate limiting
- Logging configuration
"""
