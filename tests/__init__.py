"""
FretNinja Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    ├── unit/                # Unit tests (isolated, mocked database)
    │   ├── test_streak.py   # Streak calculator
    │   ├── test_session_service.py  # Session state machine
    │   ├── test_answer_service.py   # Answer ledger
    │   ├── test_achievement_service.py  # Achievement evaluator
    │   └── test_stats_service.py    # Heatmap, mastery, overview, error patterns
    └── integration/         # Integration tests (require PostgreSQL)
        ├── test_health.py   # Health endpoint tests
        └── test_quiz_flow.py  # End-to-end quiz flow and concurrency

Running Tests:
    # Run unit tests (default; integration tests are deselected)
    pytest tests/ -v

    # Run only integration tests (requires a PostgreSQL test database)
    pytest tests/integration/ -m integration -v
"""
