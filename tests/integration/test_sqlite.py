"""Integration tests for the full Database workflow.

Covers: schema introspection, prepare errors, execute/execute2/execute_batch,
query cursors, first-row helpers, counters, transactions, callbacks and
custom functions against a real SQLite in-memory database.
"""

from __future__ import annotations

import pytest

from lite_query.core.database import ColumnInfo, Database
from lite_query.core.enums import ResultCode
from lite_query.core.exceptions import (
    AuthorizationError,
    ConstraintError,
    InterruptError,
    SQLError,
    SQLSyntaxError,
    TransactionStateError,
)
from lite_query.core.result_set import ResultSet
from lite_query.core.statement import Statement

pytestmark = pytest.mark.integration


class TestTableInfo:
    def test_table_info(self, db: Database) -> None:
        columns = db.table_info("foo")
        assert [c.name for c in columns] == ["a", "b"]
        assert columns[0].pk == 1

    def test_defaults(self, db: Database) -> None:
        with db.transaction():
            db.execute(
                "create table defaults_test ( a string default NULL, "
                "b string default 'Hello', c string default '--- []\n' )"
            )
            data = db.table_info("defaults_test")

        assert data[0] == ColumnInfo(cid=0, name="a", type="string", notnull=0, dflt_value=None, pk=0)
        assert data[1] == ColumnInfo(cid=1, name="b", type="string", notnull=0, dflt_value="Hello", pk=0)
        assert data[2] == ColumnInfo(cid=2, name="c", type="string", notnull=0, dflt_value="--- []\n", pk=0)

    def test_without_defaults(self, db: Database) -> None:
        with db.transaction():
            db.execute("create table no_defaults_test ( a integer default 1, b integer )")
            data = db.table_info("no_defaults_test")

        assert data[0] == ColumnInfo(cid=0, name="a", type="integer", notnull=0, dflt_value="1", pk=0)
        assert data[1] == ColumnInfo(cid=1, name="b", type="integer", notnull=0, dflt_value=None, pk=0)

    def test_escaped_quote_in_default(self, db: Database) -> None:
        db.execute("create table quoted ( a text default 'it''s' )")
        assert db.table_info("quoted")[0].dflt_value == "it's"


class TestStatus:
    def test_complete_fail(self, db: Database) -> None:
        assert not db.complete("select * from foo")

    def test_complete_success(self, db: Database) -> None:
        assert db.complete("select * from foo;")

    def test_errmsg(self, db: Database) -> None:
        assert db.errmsg == "not an error"

    def test_errcode(self, db: Database) -> None:
        assert db.errcode == 0

    def test_errcode_records_last_failure(self, db: Database) -> None:
        with pytest.raises(SQLError):
            db.execute("select * from barf")
        assert db.errcode == ResultCode.ERROR
        assert "no such table" in db.errmsg

        db.execute("select * from foo")
        assert db.errcode == 0
        assert db.errmsg == "not an error"


class TestCallbacks:
    def test_trace(self, db: Database) -> None:
        seen: list[str] = []
        db.trace(seen.append)
        db.execute("select * from foo")
        assert seen[-1] == "select * from foo"

    def test_authorizer_okay(self, db: Database) -> None:
        db.authorizer(lambda action, a, b, c, d: 0)
        rows = db.execute("select * from foo")
        assert len(rows) == 3

    def test_authorizer_error(self, db: Database) -> None:
        db.authorizer(lambda action, a, b, c, d: 1)
        with pytest.raises(AuthorizationError):
            db.execute("select * from foo")

    def test_authorizer_silent(self, db: Database) -> None:
        db.authorizer(lambda action, a, b, c, d: 2)
        rows = db.execute("select * from foo")
        assert rows == []

    def test_interrupt(self, db: Database) -> None:
        def abort(ctx, x):
            db.interrupt()
            ctx.result = x

        db.create_function("abort", 1, abort)
        with pytest.raises(InterruptError):
            db.execute("select abort(a) from foo")

    def test_create_function(self, db: Database) -> None:
        def munge(ctx, x):
            ctx.result = f">>>{x}<<<"

        db.create_function("munge", 1, munge)
        value = db.get_first_value("select munge(b) from foo where a=1")
        assert value == ">>>foo<<<"


class TestPrepare:
    def test_invalid_syntax(self, db: Database) -> None:
        with pytest.raises(SQLError):
            db.prepare("select from foo")

    def test_error_position(self, db: Database) -> None:
        with pytest.raises(SQLSyntaxError) as exc_info:
            db.prepare("select from foo")
        assert exc_info.value.sql_offset == 7
        assert str(exc_info.value) == 'near "from": syntax error:\nselect from foo\n       ^'

    def test_error_position_on_second_line(self, db: Database) -> None:
        with pytest.raises(SQLSyntaxError) as exc_info:
            db.prepare("select\nfrom foo\n")
        assert str(exc_info.value) == 'near "from": syntax error:\nselect\nfrom foo\n^'

    def test_error_position_before_last_line(self, db: Database) -> None:
        with pytest.raises(SQLSyntaxError) as exc_info:
            db.prepare("select asdf\nfrom foo\n")
        assert str(exc_info.value) == "no such column: asdf:\nselect asdf\n       ^\nfrom foo"

    def test_invalid_column(self, db: Database) -> None:
        with pytest.raises(SQLError):
            db.prepare("select k from foo")

    def test_invalid_table(self, db: Database) -> None:
        with pytest.raises(SQLError):
            db.prepare("select * from barf")

    def test_no_callback(self, db: Database) -> None:
        stmt = db.prepare("select * from foo")
        assert isinstance(stmt, Statement)
        stmt.close()

    def test_with_callback(self, db: Database) -> None:
        seen: list[Statement] = []
        db.prepare("select * from foo", seen.append)
        assert len(seen) == 1
        assert seen[0].closed

    def test_context_manager(self, db: Database) -> None:
        with db.prepare("select * from foo") as stmt:
            assert stmt.execute_rows() == [[1, "foo"], [2, "bar"], [3, "baz"]]
        assert stmt.closed


class TestExecute:
    @pytest.mark.parametrize(
        ("sql", "bind_vars", "expected"),
        [
            ("select * from foo where a > 100", (), 0),
            ("select * from foo where a > ?", (100,), 0),
            ("select * from foo where a = 1", (), 1),
            ("select * from foo where a = ?", (1,), 1),
        ],
    )
    def test_execute(self, db: Database, sql: str, bind_vars: tuple, expected: int) -> None:
        assert len(db.execute(sql, *bind_vars)) == expected

        called: list[object] = []
        assert db.execute(sql, *bind_vars, callback=called.append) == []
        assert len(called) == expected

    @pytest.mark.parametrize(
        ("sql", "bind_vars", "expected"),
        [
            ("select * from foo where a > 100", (), 0),
            ("select * from foo where a > ?", (100,), 0),
            ("select * from foo where a = 1", (), 1),
            ("select * from foo where a = ?", (1,), 1),
        ],
    )
    def test_execute2(self, db: Database, sql: str, bind_vars: tuple, expected: int) -> None:
        columns, *rows = db.execute2(sql, *bind_vars)
        assert columns == ["a", "b"]
        assert len(rows) == expected

        called: list[object] = []
        db.execute2(sql, *bind_vars, callback=called.append)
        assert called[0] == ["a", "b"]
        assert len(called) == expected + 1
        if expected:
            assert called[1] == [1, "foo"]

    def test_results_as_hash(self, db: Database) -> None:
        db.results_as_hash = True
        assert db.execute("select * from foo where a = 1") == [{"a": 1, "b": "foo"}]

    def test_bind_array_parameter(self, db: Database) -> None:
        result = db.get_first_value("select b from foo where a=? and b=?", [1, "foo"])
        assert result == "foo"

    def test_named_parameters(self, db: Database) -> None:
        rows = db.execute("select b from foo where a = :a", {"a": 2})
        assert rows == [["bar"]]

    def test_nested_array_parameters(self, db: Database) -> None:
        assert db.execute("select ?, ?, ?", 1, ["a", "b"]) == [[1, "a", "b"]]
        assert db.execute("select ?, ?", [[1, "foo"]]) == [[1, "foo"]]


class TestExecuteBatch:
    def test_empty(self, db: Database) -> None:
        db.execute_batch("")

    def test_no_bind(self, db: Database) -> None:
        with db.transaction():
            db.execute_batch(
                """
                create table bar ( a, b, c );
                insert into bar values ( 'one', 2, 'three' );
                insert into bar values ( 'four', 5, 'six' );
                insert into bar values ( 'seven', 8, 'nine' );
                """
            )
        rows = db.execute("select * from bar")
        assert len(rows) == 3

    def test_with_bind(self, db: Database) -> None:
        db.execute_batch(
            """
            create table bar ( a, b, c );
            insert into bar values ( 'one', 2, ? );
            insert into bar values ( 'four', 5, ? );
            insert into bar values ( 'seven', 8, ? );
            """,
            [1],
        )
        rows = [c for _, _, c in db.execute("select * from bar")]
        assert rows == [1, 1, 1]

    def test_mapping_binds_only_matching_statements(self, db: Database) -> None:
        db.execute_batch(
            "create table t ( x ); insert into t values ( :x ); insert into t values ( :y );",
            {"x": 1, "y": 2},
        )
        assert db.execute("select x from t") == [[None], [None]]

    def test_mapping_binds_statement_with_same_names(self, db: Database) -> None:
        db.execute_batch(
            """
            create table t ( x, y );
            insert into t values ( :x, :y );
            insert into t values ( :x, 0 );
            """,
            {"x": 1, ":y": 2},
        )
        assert db.execute("select x, y from t") == [[1, 2], [None, 0]]

    def test_keeps_trigger_body_together(self, db: Database) -> None:
        db.execute_batch(
            """
            create table log ( msg text );
            create trigger foo_insert after insert on foo begin
                insert into log values ( new.b );
            end;
            insert into foo ( b ) values ( 'qux' );
            """
        )
        assert db.execute("select msg from log") == [["qux"]]


class TestQuery:
    @pytest.mark.parametrize(
        ("sql", "bind_vars"),
        [
            ("select * from foo where a > 100", ()),
            ("select * from foo where a > ?", (100,)),
        ],
    )
    def test_no_match(self, db: Database, sql: str, bind_vars: tuple) -> None:
        result = db.query(sql, *bind_vars)
        assert result.next() is None
        result.close()

        seen: list[ResultSet] = []

        def check(rs: ResultSet) -> None:
            assert rs.next() is None
            seen.append(rs)

        db.query(sql, *bind_vars, callback=check)
        assert seen[0].closed

    @pytest.mark.parametrize(
        ("sql", "bind_vars"),
        [
            ("select * from foo where a = 1", ()),
            ("select * from foo where a = ?", (1,)),
        ],
    )
    def test_with_match(self, db: Database, sql: str, bind_vars: tuple) -> None:
        result = db.query(sql, *bind_vars)
        assert result.next() is not None
        assert result.next() is None
        assert result.next() is None
        result.close()

        seen: list[ResultSet] = []

        def check(rs: ResultSet) -> None:
            assert rs.next() is not None
            assert rs.next() is None
            seen.append(rs)

        db.query(sql, *bind_vars, callback=check)
        assert seen[0].closed

    def test_callback_error_still_closes(self, db: Database) -> None:
        seen: list[ResultSet] = []

        def explode(rs: ResultSet) -> None:
            seen.append(rs)
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            db.query("select * from foo", callback=explode)
        assert seen[0].closed


class TestFirstRow:
    @pytest.mark.parametrize(
        ("sql", "bind_vars", "expected"),
        [
            ("select * from foo where a=100", (), None),
            ("select * from foo where a=1", (), [1, "foo"]),
            ("select * from foo where a=?", (100,), None),
            ("select * from foo where a=?", (1,), [1, "foo"]),
        ],
    )
    def test_get_first_row(self, db: Database, sql: str, bind_vars: tuple, expected) -> None:
        assert db.get_first_row(sql, *bind_vars) == expected

    @pytest.mark.parametrize(
        ("sql", "bind_vars", "expected"),
        [
            ("select b, a from foo where a=100", (), None),
            ("select b, a from foo where a=1", (), "foo"),
            ("select b, a from foo where a=?", (100,), None),
            ("select b, a from foo where a=?", (1,), "foo"),
        ],
    )
    def test_get_first_value(self, db: Database, sql: str, bind_vars: tuple, expected) -> None:
        assert db.get_first_value(sql, *bind_vars) == expected
        db.results_as_hash = True
        assert db.get_first_value(sql, *bind_vars) == expected

    def test_get_first_value_with_repeated_column_names(self, db: Database) -> None:
        sql = "select b, a as b from foo where a=1"
        assert db.get_first_value(sql) == "foo"
        db.results_as_hash = True
        assert db.get_first_value(sql) == "foo"


class TestCounters:
    def test_last_insert_row_id(self, db: Database) -> None:
        db.execute("insert into foo ( b ) values ( 'test' )")
        assert db.last_insert_row_id == 4
        db.execute("insert into foo ( b ) values ( 'again' )")
        assert db.last_insert_row_id == 5

    def test_changes(self, db: Database) -> None:
        db.execute("insert into foo ( b ) values ( 'test' )")
        assert db.changes == 1
        db.execute("delete from foo where 1=1")
        assert db.changes == 4

    def test_total_changes(self, db: Database) -> None:
        assert db.total_changes == 3
        db.execute("insert into foo ( b ) values ( 'test' )")
        db.execute("delete from foo where 1=1")
        assert db.total_changes == 8

    def test_counters_are_not_traced(self, db: Database) -> None:
        seen: list[str] = []
        db.trace(seen.append)
        db.execute("insert into foo ( b ) values ( 'test' )")
        assert db.changes == 1
        assert db.last_insert_row_id == 4
        assert seen == ["insert into foo ( b ) values ( 'test' )"]


class TestTransactions:
    def test_nest(self, db: Database) -> None:
        with pytest.raises(TransactionStateError), db.transaction():
            with db.transaction():
                pass
        assert not db.transaction_active

    def test_rollback(self, db: Database) -> None:
        db.transaction()
        db.execute_batch(
            """
            insert into foo (b) values ( 'test1' );
            insert into foo (b) values ( 'test2' );
            insert into foo (b) values ( 'test3' );
            insert into foo (b) values ( 'test4' );
            """
        )
        assert db.get_first_value("select count(*) from foo") == 7
        db.rollback()
        assert db.get_first_value("select count(*) from foo") == 3

    def test_commit(self, db: Database) -> None:
        db.transaction()
        db.execute_batch(
            """
            insert into foo (b) values ( 'test1' );
            insert into foo (b) values ( 'test2' );
            insert into foo (b) values ( 'test3' );
            insert into foo (b) values ( 'test4' );
            """
        )
        assert db.get_first_value("select count(*) from foo") == 7
        db.commit()
        assert db.get_first_value("select count(*) from foo") == 7

    def test_rollback_in_block(self, db: Database) -> None:
        with pytest.raises(SQLError), db.transaction():
            db.rollback()

    def test_commit_in_block(self, db: Database) -> None:
        with pytest.raises(SQLError), db.transaction():
            db.commit()

    def test_active(self, db: Database) -> None:
        assert not db.transaction_active
        db.transaction()
        assert db.transaction_active
        db.commit()
        assert not db.transaction_active

    def test_implicit_rollback(self, db: Database) -> None:
        assert not db.transaction_active
        db.transaction()
        db.execute("create table bar (x CHECK(1 = 0))")
        assert db.transaction_active
        with pytest.raises(ConstraintError):
            db.execute("insert or rollback into bar (x) VALUES ('x')")
        assert not db.transaction_active

    def test_block_rolls_back_on_error(self, db: Database) -> None:
        with pytest.raises(RuntimeError, match="boom"), db.transaction():
            db.execute("insert into foo ( b ) values ( 'test' )")
            raise RuntimeError("boom")
        assert db.get_first_value("select count(*) from foo") == 3
        assert not db.transaction_active

    def test_trace_sees_transaction_control(self, db: Database) -> None:
        seen: list[str] = []
        db.trace(seen.append)
        with db.transaction("immediate"):
            pass
        assert seen == ["begin immediate transaction", "commit transaction"]
