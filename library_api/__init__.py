"""
Library API Application Package

REST API for managing authors and the books they wrote.
All core modules, routers, and services are organized within this package.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- main.py: FastAPI application factory and configuration
- dependencies.py: Query parameter validation and injected dependencies
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Caching, rate limiting, the generic resource handler, JWT
"""

__version__ = "0.1.0"
