"""
Integration Tests

These tests drive the FastAPI app over HTTP (httpx ASGITransport) with the
database dependency pointed at a per-test SQLite file, verifying that
routers, dependencies, services and error handling work together.
"""
