"""
Study Tracker Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures: SQLite engine, frozen clock, factories
    ├── unit/                # Services, helpers, models and settings
    └── integration/         # HTTP API through httpx ASGITransport

Running Tests:
    # Run all tests
    pytest backend/tests -v

    # Run only unit tests
    pytest backend/tests/unit -v

    # Skip the HTTP tests
    pytest backend/tests -m "not integration"
"""
