"""
Tests for engine setup, table creation and session handling
"""
from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool

from bricks_builder.core.database import (get_db, get_engine,
                                          get_session_local, init_db,
                                          reset_engine)
from bricks_builder.models.teaching import Lesson


class TestDatabase:

    def test_init_db_creates_tables(self):
        reset_engine()
        try:
            init_db()
            tables = set(inspect(get_engine()).get_table_names())
            assert {"lessons", "lesson_scenarios", "build_sessions"} <= tables
        finally:
            reset_engine()

    def test_memory_database_shares_one_connection(self):
        reset_engine()
        try:
            assert isinstance(get_engine().pool, StaticPool)
        finally:
            reset_engine()

    def test_reset_engine_drops_memory_database(self, db):
        db.add(Lesson(id="lesson_hero", title="Hero sections", category="layout"))
        db.commit()

        reset_engine()
        init_db()
        session = get_session_local()()
        try:
            assert session.query(Lesson).count() == 0
        finally:
            session.close()

    def test_get_db_yields_and_closes_session(self, db):
        sessions = get_db()
        session = next(sessions)

        assert session.execute(text("SELECT 1")).scalar() == 1

        sessions.close()
        assert not session.in_transaction()
