"""
Test Suite for the Library API

Test Organization:
- conftest.py: Shared fixtures (test database, fake Redis, client, sample data)
- test_authors.py: /api/authors endpoints
- test_books.py: /api/books endpoints
- test_author_books.py: /api/authors/{id}/books
- test_cache.py: versioned cache keys and invalidation
- test_users.py: /api/user and JWT handling
- test_app.py: error envelopes, health check and rate limiting

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_books.py

    # Run with verbose output
    pytest -v
"""
