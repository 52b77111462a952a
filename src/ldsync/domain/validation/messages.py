"""Message texts produced by the validator.

Callers and tests match on these, so wording changes are behaviour changes.
"""

from __future__ import annotations

EMPTY_DOCUMENT = "Table data is empty or not an array"
TYPE_MISSING = "@type must be present in the data"
TYPE_EMPTY = "@type cannot be empty"
TYPE_FORMAT = "@type must follow the format prefix:tableName"


def invalid_url(node_id: object, table: str) -> str:
    return f"Invalid URL format: {node_id} for @id on table {table}"


def unrecognized_table(table: str) -> str:
    return f"Table {table} is not recognized in the basic tier and will be ignored."


def missing_required(field: str, table: str) -> str:
    return f"Required field {field} is missing on table {table}"


def empty_field(field: str, table: str) -> str:
    return f"Field {field} is empty on table {table}"


def missing_not_null(field: str, table: str) -> str:
    return f"Field {field} is null or empty on table {table}"


def duplicate_values(field: str, table: str) -> str:
    return f"Duplicate values in field {field} on table {table}"


def duplicate_unique(field: str, value: object, table: str) -> str:
    return f"Duplicate value for unique field {field}: {value} in table {table}"


def null_or_empty(field: str, table: str) -> str:
    return f"Field {field} on table {table} is null or empty."


def required_empty(field: str, table: str) -> str:
    return f"Field {field} on table {table} is required."


def has_no(table: str, name: str, field: str) -> str:
    return f"{table} {name} has no {field}"


def not_a_member(member: str, name: str, container: str, field: str) -> str:
    return f"{member} {name} is not listed in the {field} of any {container}"


def dangling_link(table: str, name: str, field: str, item: str, linked_table: str) -> str:
    return (
        f"{table} {name} linked on {field} to item {item} that does not exist "
        f"in the {linked_table} table"
    )


def invalid_value(field: str, table: str, kind: str) -> str:
    return f"Field {field} on table {table} has an invalid value for type {kind}."


def invalid_option(field: str, table: str, value: object) -> str:
    return f"Field {field} on table {table} has an invalid value: {value}"
