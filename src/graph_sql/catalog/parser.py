"""
Definition parser: turn catalog ``CREATE TABLE`` text into TableDef descriptors.

Parsing is strict. Anything that is a table but cannot be understood raises
ParseError; views and virtual tables are skipped.

Declared column types are read from the source text before sqlglot sees it:
SQLite accepts any sequence of names as a type (``UNSIGNED BIG INT``) and
sqlglot normalizes the ones it knows (``INTEGER`` becomes ``INT``), while the
exact text decides whether a key is an alias for rowid.
"""

import re
from dataclasses import replace

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from ..errors import ParseError
from ..logging import get_logger
from .models import ColumnDef, ForeignKeyDef, TableDef

logger = get_logger(__name__)

DIALECT = "sqlite"

# Stands in for every declared type in the text handed to sqlglot
_PLACEHOLDER_TYPE = "TEXT"

_IDENTIFIER = (
    r"""(?:"(?:[^"]|"")*"|`(?:[^`]|``)*`|\[[^\]]*\]|'(?:[^']|'')*'|[^\s("'`\[.,)]+)"""
)

_VIRTUAL_TABLE_RE = re.compile(r"^\s*CREATE\s+VIRTUAL\s+TABLE\b", re.IGNORECASE)
_CREATE_TABLE_RE = re.compile(
    rf"^\s*CREATE\s+(?:TEMP(?:ORARY)?\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    rf"(?:{_IDENTIFIER}\s*\.\s*)?{_IDENTIFIER}\s*\(",
    re.IGNORECASE,
)
_TABLE_OPTIONS_RE = re.compile(
    r"\)\s*((?:WITHOUT\s+ROWID|STRICT)(?:\s*,\s*(?:WITHOUT\s+ROWID|STRICT))*)\s*;?\s*$",
    re.IGNORECASE,
)
_WITHOUT_ROWID_RE = re.compile(r"WITHOUT\s+ROWID", re.IGNORECASE)
_ON_CONFLICT_RE = re.compile(
    r"\bON\s+CONFLICT\s+(?:ROLLBACK|ABORT|FAIL|IGNORE|REPLACE)\b", re.IGNORECASE
)
_TOKEN_RE = re.compile(
    r"""
      (?P<comment>--[^\n]*|/\*.*?(?:\*/|$))
    | (?P<quoted>'(?:[^']|'')*'|"(?:[^"]|"")*"|`(?:[^`]|``)*`|\[[^\]]*\])
    | (?P<open>\()
    | (?P<close>\))
    | (?P<comma>,)
    | (?P<other>[^'"`\[(),/-]+|[/-])
    """,
    re.VERBOSE | re.DOTALL,
)
_TABLE_CONSTRAINT_RE = re.compile(
    r"^\s*(?:CONSTRAINT|PRIMARY|UNIQUE|CHECK|FOREIGN)\b", re.IGNORECASE
)
_CONSTRAINT_KEYWORDS = (
    "CONSTRAINT|PRIMARY|NOT|NULL|UNIQUE|CHECK|DEFAULT|COLLATE|REFERENCES|GENERATED|AS"
)
_COLUMN_HEAD_RE = re.compile(
    rf"""
    \s*(?P<name>{_IDENTIFIER})
    (?P<type>
        (?:\s+(?!(?:{_CONSTRAINT_KEYWORDS})\b)[A-Za-z_][A-Za-z0-9_]*)+
        (?:\s*\(\s*[+-]?[\w.]+\s*(?:,\s*[+-]?[\w.]+\s*)?\))?
    )?
    """,
    re.VERBOSE | re.IGNORECASE,
)
_TYPE_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_TYPE_ARGS_RE = re.compile(r"\(.*\)", re.DOTALL)

_DEFAULTING_CONSTRAINTS = (
    exp.DefaultColumnConstraint,
    exp.AutoIncrementColumnConstraint,
)
# GENERATED ALWAYS AS (...) and the short AS (...) form
_GENERATED_CONSTRAINTS = (
    exp.ComputedColumnConstraint,
    exp.GeneratedAsIdentityColumnConstraint,
)


def _split_table_options(sql: str) -> tuple[str, bool]:
    """Strip trailing SQLite table options; report whether WITHOUT ROWID was present."""
    match = _TABLE_OPTIONS_RE.search(sql)
    if not match:
        return sql, False
    without_rowid = bool(_WITHOUT_ROWID_RE.search(match.group(1)))
    return sql[: match.start(1)], without_rowid


def _split_elements(text: str) -> tuple[list[str], int] | None:
    """Split a column list at top-level commas.

    Comments are dropped and ``ON CONFLICT`` clauses removed. Returns the
    elements and the offset of the closing parenthesis, or None if the list
    is not closed.
    """
    elements: list[str] = []
    current: list[str] = []
    depth = 0
    pos = 0
    while pos < len(text):
        token = _TOKEN_RE.match(text, pos)
        if token is None:
            # Unbalanced quote; leave it to sqlglot to reject
            return None
        pos = token.end()
        kind, value = token.lastgroup, token.group()
        if kind == "comment":
            current.append(" ")
        elif kind == "open":
            depth += 1
            current.append(value)
        elif kind == "close":
            if depth == 0:
                elements.append("".join(current))
                return elements, token.start()
            depth -= 1
            current.append(value)
        elif kind == "comma" and depth == 0:
            elements.append("".join(current))
            current = []
        elif kind == "other":
            current.append(_ON_CONFLICT_RE.sub(" ", value))
        else:
            current.append(value)
    return None


def _declared_type(text: str) -> str:
    """Normalize a type name: single spaces between words, no spaces in arguments."""
    args = _TYPE_ARGS_RE.search(text)
    words = _TYPE_WORD_RE.findall(text[: args.start()] if args else text)
    suffix = re.sub(r"\s+", "", args.group()) if args else ""
    return " ".join(words) + suffix


def _prepare(sql: str) -> tuple[str, list[str] | None]:
    """Rewrite a CREATE TABLE statement into a form sqlglot accepts.

    Returns the rewritten text and the declared type of every column in
    declaration order (``""`` when untyped), or None for the types when the
    text has no recognizable column list.
    """
    head = _CREATE_TABLE_RE.match(sql)
    if head is None:
        return sql, None
    split = _split_elements(sql[head.end() :])
    if split is None:
        return sql, None
    elements, close = split

    declared: list[str] = []
    rewritten: list[str] = []
    for element in elements:
        if _TABLE_CONSTRAINT_RE.match(element):
            rewritten.append(element)
            continue
        column = _COLUMN_HEAD_RE.match(element)
        if column is None:
            rewritten.append(element)
            continue
        declared.append(_declared_type(column.group("type") or ""))
        rewritten.append(
            f"{column.group('name')} {_PLACEHOLDER_TYPE}{element[column.end():]}"
        )

    body = sql[: head.end()] + ",".join(rewritten) + sql[head.end() + close :]
    return body, declared


def _name_of(node: exp.Expression) -> str:
    """Column name from an identifier, column, or ordered key element."""
    if isinstance(node, exp.Ordered):
        node = node.this
    return node.name


def _type_keyword(kind: exp.Expression | None) -> str:
    if kind is None:
        return ""
    if isinstance(kind, exp.DataType):
        if kind.this == exp.DataType.Type.USERDEFINED:
            return str(kind.args.get("kind") or "").upper()
        return str(kind.this.value).upper()
    return kind.sql().upper()


def _reference_target(reference: exp.Reference) -> tuple[str, list[str]]:
    """Referenced table and column names of a REFERENCES clause."""
    target = reference.this
    if isinstance(target, exp.Schema):
        return target.this.name, [_name_of(col) for col in target.expressions]
    return target.name, []


def _parse_column(
    column: exp.ColumnDef, declared_type: str | None
) -> tuple[ColumnDef, bool, tuple[str, list[str]] | None]:
    """Return the column descriptor, its inline PRIMARY KEY flag, and an inline reference."""
    not_null = False
    has_default = False
    generated = False
    primary = False
    reference = None

    for constraint in column.args.get("constraints") or []:
        kind = constraint.args.get("kind")
        if isinstance(kind, exp.NotNullColumnConstraint):
            not_null = not kind.args.get("allow_null")
        elif isinstance(kind, exp.PrimaryKeyColumnConstraint):
            primary = True
        elif isinstance(kind, _DEFAULTING_CONSTRAINTS):
            has_default = True
        elif isinstance(kind, _GENERATED_CONSTRAINTS):
            generated = True
        elif isinstance(kind, exp.Reference):
            reference = _reference_target(kind)

    if declared_type is None:
        declared_type = _type_keyword(column.args.get("kind"))

    descriptor = ColumnDef(
        name=column.name,
        type_keyword=declared_type,
        nullable=not not_null,
        has_default=has_default,
        primary_key=primary,
        generated=generated,
    )
    return descriptor, primary, reference


def parse_table_definition(name: str, sql: str) -> TableDef | None:
    """Parse one catalog definition.

    Args:
        name: Table name as recorded in the catalog
        sql: The stored ``CREATE`` statement

    Returns:
        TableDef, or None for views and virtual tables

    Raises:
        ParseError: If the definition cannot be parsed
    """
    if _VIRTUAL_TABLE_RE.match(sql):
        logger.debug("Skipping virtual table", table=name)
        return None

    body, without_rowid = _split_table_options(sql)
    body, declared = _prepare(body)

    try:
        statement = sqlglot.parse_one(body, read=DIALECT)
    except SqlglotError as e:
        raise ParseError(f"Unable to parse definition of table '{name}': {e}", table=name) from e

    if not isinstance(statement, exp.Create):
        raise ParseError(f"Definition of table '{name}' is not a CREATE statement", table=name)

    kind = str(statement.args.get("kind") or "").upper()
    if kind != "TABLE":
        logger.debug("Skipping non-table object", table=name, kind=kind)
        return None

    schema = statement.this
    if not isinstance(schema, exp.Schema):
        raise ParseError(f"Definition of table '{name}' has no column list", table=name)

    columns: list[ColumnDef] = []
    primary_key: list[str] = []
    foreign_keys: list[ForeignKeyDef] = []
    composite_foreign_keys: list[tuple[str, ...]] = []

    def add_foreign_key(local: list[str], target: tuple[str, list[str]]) -> None:
        ref_table, ref_columns = target
        if len(local) != 1 or len(ref_columns) > 1:
            composite_foreign_keys.append(tuple(local))
            return
        foreign_keys.append(
            ForeignKeyDef(
                column=local[0],
                ref_table=ref_table,
                ref_column=ref_columns[0] if ref_columns else None,
            )
        )

    declared_types = iter(declared) if declared is not None else None

    def declared_type() -> str | None:
        if declared_types is None:
            return None
        value = next(declared_types, None)
        if value is None:
            raise ParseError(f"Column list of table '{name}' could not be read", table=name)
        return value

    for element in schema.expressions:
        # CONSTRAINT <name> <constraint>
        if isinstance(element, exp.Constraint):
            inner = element.expressions
        else:
            inner = [element]

        for node in inner:
            if isinstance(node, exp.ColumnDef):
                column, inline_primary, reference = _parse_column(node, declared_type())
                columns.append(column)
                if inline_primary:
                    primary_key.append(column.name)
                if reference is not None:
                    add_foreign_key([column.name], reference)
            elif isinstance(node, (exp.Identifier, exp.Column)):
                # A bare name: no declared type, no constraints
                columns.append(ColumnDef(name=node.name, type_keyword=declared_type() or ""))
            elif isinstance(node, exp.PrimaryKey):
                primary_key.extend(_name_of(col) for col in node.expressions)
            elif isinstance(node, exp.ForeignKey):
                reference = node.args.get("reference")
                if reference is None:
                    raise ParseError(
                        f"Foreign key without REFERENCES in table '{name}'", table=name
                    )
                add_foreign_key(
                    [_name_of(col) for col in node.expressions], _reference_target(reference)
                )

    if not columns:
        raise ParseError(f"Definition of table '{name}' declares no columns", table=name)

    known = {col.name for col in columns}
    for key in primary_key:
        if key not in known:
            raise ParseError(
                f"Primary key of table '{name}' references unknown column '{key}'", table=name
            )
    for fk in foreign_keys:
        if fk.column not in known:
            raise ParseError(
                f"Foreign key of table '{name}' references unknown column '{fk.column}'",
                table=name,
            )

    # Table-level PRIMARY KEY marks the column too
    columns = [
        col
        if col.primary_key or col.name not in primary_key
        else replace(col, primary_key=True)
        for col in columns
    ]

    return TableDef(
        name=name,
        columns=tuple(columns),
        primary_key_columns=tuple(primary_key),
        foreign_keys=tuple(foreign_keys),
        without_rowid=without_rowid,
        composite_foreign_keys=tuple(composite_foreign_keys),
    )
