"""
Integration Tests

Integration tests require a running PostgreSQL test database
(POSTGRES_TEST_* environment variables).

These tests verify that the services, routers and database constraints
work together correctly.
"""
