from types import SimpleNamespace

from binda import database
from binda.security_middleware import clear_rls_context, set_rls_context


class RecordingSession:
    """Stands in for a Postgres session and records the SQL it is sent"""

    def __init__(self, dialect="postgresql", fail_on=None):
        self.dialect = dialect
        self.fail_on = fail_on
        self.calls = []

    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name=self.dialect))

    def execute(self, statement, params=None):
        sql = str(statement)
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError("connection lost")
        self.calls.append((sql, params))

    def rollback(self):
        self.calls.append(("ROLLBACK", None))

    def commit(self):
        self.calls.append(("COMMIT", None))

    def invalidate(self):
        self.calls.append(("INVALIDATE", None))

    def close(self):
        self.calls.append(("CLOSE", None))


def _statements(session):
    return [sql for sql, _ in session.calls]


def test_tenant_setting_is_reset_before_connection_returns_to_pool(monkeypatch):
    session = RecordingSession()
    monkeypatch.setattr(database, "SessionLocal", lambda: session)

    dependency = database.get_db()
    db = next(dependency)
    set_rls_context(db, "tenant-a", "owner-1")
    dependency.close()

    statements = _statements(session)
    assert statements[-1] == "CLOSE"
    assert "SELECT set_config('app.current_tenant_id', '', false)" in statements
    assert "SELECT set_config('app.current_user_id', '', false)" in statements
    reset_at = statements.index("SELECT set_config('app.current_tenant_id', '', false)")
    assert statements.index("ROLLBACK") < reset_at < statements.index("COMMIT")


def test_connection_that_cannot_be_reset_is_discarded():
    session = RecordingSession(fail_on="set_config")

    clear_rls_context(session)

    assert _statements(session)[-1] == "INVALIDATE"


def test_reset_is_skipped_off_postgres():
    session = RecordingSession(dialect="sqlite")

    clear_rls_context(session)

    assert session.calls == []
