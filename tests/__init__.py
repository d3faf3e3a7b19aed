"""LEDGERSTORE test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- integration/  : Real databases, migrations, files and wiring.
- contract/     : Behavior every adapter of a port must share, plus
                  concurrency contracts for the SQLAlchemy adapters.
- fixtures/     : Engine and data fixtures loaded through `pytest_plugins`.

General guidance
- Keep unit fast and deterministic; in-memory SQLite counts as unit-safe.
- Contract tests parametrize implementations to ensure consistent behavior.
- Concurrency tests need file-backed SQLite or PostgreSQL: in-memory SQLite
  keeps one database per thread.
- PostgreSQL tests use Testcontainers and are skipped when Docker is down.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
"""
