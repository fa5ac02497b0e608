"""Tests for core/sql_analyzer.py"""

import pytest

from core.sql_analyzer import SQLAnalyzer
from models.schemas import RawEntry


def _entry(query="SELECT * FROM t WHERE id = 1", query_time=1.0, lock_time=0.0, ts=None, conn=None):
    return RawEntry(
        query_text=query,
        query_time=query_time,
        lock_time=lock_time,
        unix_timestamp=ts,
        connection_id=conn,
    )


class TestNormalizeSql:
    @pytest.mark.parametrize("sql, expected", [
        ("SELECT * FROM t WHERE id = 5;", "SELECT * FROM t WHERE id = ?;"),
        ("SELECT * FROM t WHERE x = -1.25", "SELECT * FROM t WHERE x = ?"),
        ("SELECT * FROM t WHERE x = +7 AND y = .5", "SELECT * FROM t WHERE x = ? AND y = ?"),
        ("SELECT * FROM t WHERE name = 'alice'", "SELECT * FROM t WHERE name = ?"),
        ("SELECT * FROM t1 JOIN t2", "SELECT * FROM t? JOIN t?"),
        ("SELECT 'it''s'", "SELECT ??"),
    ])
    def test_literals_replaced(self, sql, expected):
        assert SQLAnalyzer.normalize_sql(sql) == expected

    def test_queries_differing_only_in_literals_match(self):
        a = "UPDATE users SET name = 'bob', age = 30 WHERE id = 1"
        b = "UPDATE users SET name = 'alice smith', age = 41.5 WHERE id = 9000"
        assert SQLAnalyzer.normalize_sql(a) == SQLAnalyzer.normalize_sql(b)

    def test_numbers_replaced_before_strings(self):
        assert SQLAnalyzer.normalize_sql("SELECT 'abc123'") == "SELECT ?"

    def test_trailing_double_quote_drops_two_characters(self):
        assert SQLAnalyzer.normalize_sql('SELECT * FROM t WHERE name = "x"') == 'SELECT * FROM t WHERE name = "'

    def test_is_deterministic(self):
        sql = "SELECT * FROM t WHERE id IN (1, 2, 3) AND s = 'x'"
        assert SQLAnalyzer.normalize_sql(sql) == SQLAnalyzer.normalize_sql(sql)


class TestGetSqlType:
    @pytest.mark.parametrize("sql, expected", [
        ("SELECT 1", "SELECT"),
        ("  update t set a = 1", "UPDATE"),
        ("CALL proc()", "CALL"),
        ("SHOW TABLES", "OTHER"),
        ("", "OTHER"),
    ])
    def test_types(self, sql, expected):
        assert SQLAnalyzer.get_sql_type(sql) == expected


class TestMerge:
    def test_same_query_accumulates(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query="SELECT * FROM t WHERE id = 1", query_time=1.0, lock_time=0.5))
        analyzer.merge(_entry(query="SELECT * FROM t WHERE id = 2", query_time=2.0, lock_time=0.5))

        assert len(analyzer.stats) == 1
        stat = analyzer.stats["SELECT * FROM t WHERE id = ?"]
        assert stat.count == 2
        assert stat.query_time == 3.0
        assert stat.lock_time == 1.0
        assert stat.total_time == 4.0
        assert stat.total_time == stat.query_time + stat.lock_time
        assert stat.average_time == 2.0

    def test_distinct_queries_are_independent(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query="SELECT * FROM a WHERE id = 1"))
        analyzer.merge(_entry(query="SELECT * FROM b WHERE id = 1"))
        assert len(analyzer.stats) == 2
        assert all(stat.count == 1 for stat in analyzer.stats.values())

    def test_first_timestamp_wins(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(ts=100, conn=1))
        analyzer.merge(_entry(ts=200, conn=2))
        stat = analyzer.stats["SELECT * FROM t WHERE id = ?"]
        assert stat.unix_timestamp == 100
        assert stat.connection_id == 1

    def test_missing_timing_counts_as_zero(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query_time=None, lock_time=None))
        analyzer.merge(_entry(query_time=1.0, lock_time=0.25))
        stat = analyzer.stats["SELECT * FROM t WHERE id = ?"]
        assert stat.count == 2
        assert stat.total_time == 1.25
        assert analyzer.entries_without_timing == 1
        assert analyzer.entries_merged == 2

    def test_missing_timing_is_logged(self, caplog):
        analyzer = SQLAnalyzer()
        with caplog.at_level("WARNING"):
            analyzer.merge(_entry(query_time=None, lock_time=None))
        assert "Query_time" in caplog.text


class TestReports:
    def test_timing_rows_sorted_descending(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query="SELECT a", query_time=1.0))
        analyzer.merge(_entry(query="SELECT b", query_time=3.0))
        analyzer.merge(_entry(query="SELECT c", query_time=2.0))
        assert [s.query for s in analyzer.timing_rows()] == ["SELECT b", "SELECT c", "SELECT a"]

    def test_timing_rows_ties_keep_insertion_order(self):
        analyzer = SQLAnalyzer()
        for name in ("x", "y", "z"):
            analyzer.merge(_entry(query=f"SELECT {name}", query_time=1.0))
        assert [s.query for s in analyzer.timing_rows()] == ["SELECT x", "SELECT y", "SELECT z"]

    def test_connection_buckets_grouped_and_ascending(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query="SELECT a", ts=300))
        analyzer.merge(_entry(query="SELECT b", ts=100))
        analyzer.merge(_entry(query="SELECT c", ts=300))
        analyzer.merge(_entry(query="SELECT a", ts=50))

        buckets = analyzer.connection_buckets()
        assert [b.unix_timestamp for b in buckets] == [100, 300]
        assert buckets[1].count == 2
        assert buckets[1].queries == ["SELECT a", "SELECT c"]

    def test_absent_timestamp_bucket_sorts_first(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query="SELECT a", ts=10))
        analyzer.merge(_entry(query="SELECT b", ts=None))
        buckets = analyzer.connection_buckets()
        assert [b.unix_timestamp for b in buckets] == [None, 10]

    def test_empty_analyzer(self):
        analyzer = SQLAnalyzer()
        assert analyzer.timing_rows() == []
        assert analyzer.connection_buckets() == []


class TestNormalizedKey:
    def test_merge_uses_key_from_parser(self):
        analyzer = SQLAnalyzer()
        entry = _entry(query="SELECT * FROM t WHERE id = 1")
        entry.normalized_query = "precomputed"
        analyzer.merge(entry)
        assert list(analyzer.stats) == ["precomputed"]

    def test_merge_normalizes_when_key_missing(self):
        analyzer = SQLAnalyzer()
        analyzer.merge(_entry(query="SELECT * FROM t WHERE id = 1"))
        assert list(analyzer.stats) == ["SELECT * FROM t WHERE id = ?"]
