"""
Services Package

Logic kept separate from HTTP routing:
- cache.py: Redis caching with versioned keys
- rate_limiter.py: Rate limiting with slowapi and Redis backend
- resources.py: Generic CRUD handler shared by authors and books
- security.py: JWT access token utilities
"""
