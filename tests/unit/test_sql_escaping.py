"""Tests for LanceDB filter expression building."""

from __future__ import annotations

import math

import pytest

from parklens.database.sql_escaping import (
    WhereCondition,
    build_equality_clause,
    build_where_clause,
    escape_sql_identifier,
    escape_sql_value,
)
from parklens.exceptions import InvalidInputError


class TestEscapeValue:
    def test_doubles_single_quotes(self) -> None:
        assert escape_sql_value("O'Brien's Pub") == "O''Brien''s Pub"

    def test_backslashes_are_literal(self) -> None:
        assert escape_sql_value("a\\b") == "a\\b"

    def test_rejects_nul_bytes(self) -> None:
        with pytest.raises(InvalidInputError):
            escape_sql_value("bad\0value")

    def test_rejects_non_strings(self) -> None:
        with pytest.raises(InvalidInputError):
            escape_sql_value(42)  # type: ignore[arg-type]


class TestEscapeIdentifier:
    def test_wraps_in_backticks(self) -> None:
        assert escape_sql_identifier("destination_id") == "`destination_id`"

    def test_doubles_embedded_backticks(self) -> None:
        assert escape_sql_identifier("we`ird") == "`we``ird`"

    @pytest.mark.parametrize("identifier", ["", "meta.tags", "col\0"])
    def test_rejects_invalid(self, identifier: str) -> None:
        with pytest.raises(InvalidInputError):
            escape_sql_identifier(identifier)


class TestBuildWhereClause:
    def test_joins_conditions_with_and(self) -> None:
        clause = build_where_clause(
            [
                WhereCondition("destination_id", "=", "wdw"),
                WhereCondition("score", ">=", 0.5),
            ]
        )

        assert clause == "`destination_id` = 'wdw' AND `score` >= 0.5"

    def test_or_operator(self) -> None:
        clause = build_where_clause(
            [WhereCondition("entity_type", "=", "SHOW"), WhereCondition("entity_type", "=", "EVENT")],
            operator="OR",
        )

        assert clause == "`entity_type` = 'SHOW' OR `entity_type` = 'EVENT'"

    def test_injection_attempt_stays_inside_literal(self) -> None:
        clause = build_where_clause([WhereCondition("destination_id", "=", "wdw' OR '1'='1")])

        assert clause == "`destination_id` = 'wdw'' OR ''1''=''1'"

    def test_booleans_render_before_ints(self) -> None:
        assert build_where_clause([WhereCondition("single_rider", "=", True)]) == (
            "`single_rider` = true"
        )
        assert build_where_clause([WhereCondition("count", "=", 1)]) == "`count` = 1"

    def test_null_only_with_is(self) -> None:
        assert build_where_clause([WhereCondition("park_id", "IS", None)]) == "`park_id` IS NULL"
        assert build_where_clause([WhereCondition("park_id", "IS NOT", None)]) == (
            "`park_id` IS NOT NULL"
        )
        with pytest.raises(InvalidInputError):
            build_where_clause([WhereCondition("park_id", "=", None)])
        with pytest.raises(InvalidInputError):
            build_where_clause([WhereCondition("park_id", "IS", "x")])

    def test_rejects_non_finite_numbers(self) -> None:
        with pytest.raises(InvalidInputError):
            build_where_clause([WhereCondition("score", ">", math.inf)])
        with pytest.raises(InvalidInputError):
            build_where_clause([WhereCondition("score", ">", math.nan)])

    def test_rejects_unknown_operator(self) -> None:
        with pytest.raises(InvalidInputError):
            build_where_clause([{"column": "id", "operator": "; DROP", "value": "x"}])

    def test_rejects_empty_and_bad_logical_operator(self) -> None:
        with pytest.raises(InvalidInputError):
            build_where_clause([])
        with pytest.raises(InvalidInputError):
            build_where_clause([WhereCondition("id", "=", "x")], operator="XOR")  # type: ignore[arg-type]

    def test_accepts_mappings(self) -> None:
        clause = build_where_clause([{"column": "name", "operator": "LIKE", "value": "%Mountain%"}])

        assert clause == "`name` LIKE '%Mountain%'"

    def test_mapping_missing_key(self) -> None:
        with pytest.raises(InvalidInputError, match="operator"):
            build_where_clause([{"column": "name", "value": "x"}])


def test_build_equality_clause() -> None:
    assert build_equality_clause({"id": "80010190", "model": "openai:text-embedding-3-small"}) == (
        "`id` = '80010190' AND `model` = 'openai:text-embedding-3-small'"
    )
