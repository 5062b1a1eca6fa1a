"""
Unit Tests

Unit tests run against a throwaway SQLite database per test and a frozen
clock. No PostgreSQL server or network is needed.
"""
