"""Filter expressions for LanceDB queries.

LanceDB evaluates ``where`` filters with DataFusion's SQL expression engine
and has no bind parameters, so every value and identifier is escaped here:

- string literals: single quotes doubled (``O'Brien`` -> ``O''Brien``);
  backslashes are literal
- identifiers: wrapped in backticks, embedded backticks doubled
- operators: restricted to an allow-list

Every filter sent to the vector store must be built with these helpers.
"""

import math
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence, Union

from parklens.exceptions import InvalidInputError

ComparisonOperator = Literal["=", "!=", "<", ">", "<=", ">=", "LIKE", "IS", "IS NOT"]
LogicalOperator = Literal["AND", "OR"]
FilterValue = Union[str, int, float, bool, None]

VALID_OPERATORS: tuple[str, ...] = ("=", "!=", "<", ">", "<=", ">=", "LIKE", "IS", "IS NOT")
NULL_OPERATORS = frozenset({"IS", "IS NOT"})


@dataclass(frozen=True)
class WhereCondition:
    """A single ``column operator value`` condition."""

    column: str
    operator: ComparisonOperator
    value: FilterValue


def escape_sql_value(value: str) -> str:
    """Escape a string for use inside a single-quoted SQL literal.

    Returns the escaped text without the surrounding quotes.

    Raises:
        InvalidInputError: value is not a string or contains a NUL byte.
    """
    if not isinstance(value, str):
        raise InvalidInputError(
            f"escape_sql_value requires a string, got {type(value).__name__}"
        )
    if "\0" in value:
        raise InvalidInputError("SQL values cannot contain null bytes")
    return value.replace("'", "''")


def escape_sql_identifier(identifier: str) -> str:
    """Quote a column name with backticks.

    Dotted paths are rejected; escape each segment separately.

    Raises:
        InvalidInputError: identifier is empty, dotted, or contains a NUL byte.
    """
    if not isinstance(identifier, str):
        raise InvalidInputError(
            f"escape_sql_identifier requires a string, got {type(identifier).__name__}"
        )
    if not identifier:
        raise InvalidInputError("SQL identifiers cannot be empty")
    if "." in identifier:
        raise InvalidInputError(
            "SQL identifiers cannot contain periods. "
            "For nested fields, escape each segment separately."
        )
    if "\0" in identifier:
        raise InvalidInputError("SQL identifiers cannot contain null bytes")
    escaped = identifier.replace("`", "``")
    return f"`{escaped}`"


def _format_value(value: Any, index: int) -> str:
    # bool before int: True is an int in Python
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f"'{escape_sql_value(value)}'"
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise InvalidInputError(f"Invalid number at index {index}: must be finite")
        return repr(value)
    raise InvalidInputError(
        f"Invalid value type at index {index}: {type(value).__name__}. "
        "Must be str, int, float, bool, or None."
    )


def _render_condition(condition: Union[WhereCondition, Mapping[str, Any]], index: int) -> str:
    if isinstance(condition, WhereCondition):
        column, op, value = condition.column, condition.operator, condition.value
    elif isinstance(condition, Mapping):
        try:
            column = condition["column"]
            op = condition["operator"]
        except KeyError as exc:
            raise InvalidInputError(
                f"Condition at index {index} is missing {exc.args[0]!r}"
            ) from exc
        value = condition.get("value")
    else:
        raise InvalidInputError(f"Condition at index {index} must be a WhereCondition or mapping")

    if not isinstance(column, str) or not column:
        raise InvalidInputError(f"Invalid column at index {index}: must be a non-empty string")
    if op not in VALID_OPERATORS:
        raise InvalidInputError(
            f"Invalid operator at index {index}: {op!r}. "
            f"Must be one of: {', '.join(VALID_OPERATORS)}"
        )

    escaped_column = escape_sql_identifier(column)

    if value is None:
        if op not in NULL_OPERATORS:
            raise InvalidInputError(
                f"NULL values can only be used with IS or IS NOT operators at index {index}"
            )
        return f"{escaped_column} {op} NULL"
    if op in NULL_OPERATORS:
        raise InvalidInputError(f"Operator {op} at index {index} requires a NULL value")

    return f"{escaped_column} {op} {_format_value(value, index)}"


def build_where_clause(
    conditions: Sequence[Union[WhereCondition, Mapping[str, Any]]],
    operator: LogicalOperator = "AND",
) -> str:
    """Build a filter expression from structured conditions.

    Example:
        >>> build_where_clause([WhereCondition("name", "=", "O'Brien's Pub")])
        "`name` = 'O''Brien''s Pub'"

    Args:
        conditions: WhereCondition objects or mappings with column/operator/value.
        operator: "AND" or "OR" between conditions.

    Raises:
        InvalidInputError: empty condition list, unknown operator, bad value.
    """
    if isinstance(conditions, (str, bytes)) or not isinstance(conditions, Sequence):
        raise InvalidInputError("build_where_clause requires a sequence of conditions")
    if not conditions:
        raise InvalidInputError("build_where_clause requires at least one condition")
    if operator not in ("AND", "OR"):
        raise InvalidInputError(f"Invalid logical operator: {operator!r}. Must be AND or OR.")

    clauses = [_render_condition(condition, i) for i, condition in enumerate(conditions)]
    return f" {operator} ".join(clauses)


def build_equality_clause(fields: Mapping[str, Union[str, int, float, bool]]) -> str:
    """Build ``col = value AND ...`` for each item of ``fields``."""
    return build_where_clause(
        [WhereCondition(column, "=", value) for column, value in fields.items()]
    )
