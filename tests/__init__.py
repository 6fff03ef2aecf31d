"""
LevelUp Test Suite
==================

Test Organization
-----------------
- tests/unit/          : Pure functions, event bus, config, catalog parsing
- tests/integration/   : Services against an in-memory SQLite store

Testing Philosophy
------------------
- Unit tests: fast, no storage
- Integration tests: real SQLAlchemy sessions, injected clock and random source
- Use pytest markers (`unit`, `integration`) to select
- Follow AAA pattern: Arrange, Act, Assert
"""
