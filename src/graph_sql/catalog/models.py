"""
Immutable descriptors produced by one introspection pass
"""

from dataclasses import dataclass, field

# SQLite's implicit integer key on tables declared without a primary key.
ROWID = "rowid"


@dataclass(frozen=True)
class ColumnDef:
    """A single column as declared in the table definition."""

    name: str
    type_keyword: str
    nullable: bool = True
    has_default: bool = False
    primary_key: bool = False
    # GENERATED ALWAYS AS (...): readable, never written
    generated: bool = False


@dataclass(frozen=True)
class ForeignKeyDef:
    """A foreign key from ``column`` to ``ref_table.ref_column``.

    ``ref_column`` is None when the definition names only the parent table,
    which means the parent's primary key.
    """

    column: str
    ref_table: str
    ref_column: str | None = None


@dataclass(frozen=True)
class TableDef:
    """A parsed table definition."""

    name: str
    columns: tuple[ColumnDef, ...]
    primary_key_columns: tuple[str, ...] = ()
    foreign_keys: tuple[ForeignKeyDef, ...] = ()
    without_rowid: bool = False
    # Multi-column foreign keys, kept only so they can be reported.
    composite_foreign_keys: tuple[tuple[str, ...], ...] = field(default=())

    @property
    def primary_key(self) -> str | None:
        """Name of the key column used for row identity.

        Returns None for composite keys and for ``WITHOUT ROWID`` tables
        without a single-column key; those tables are not supported.
        """
        if len(self.primary_key_columns) == 1:
            return self.primary_key_columns[0]
        if not self.primary_key_columns and not self.without_rowid:
            return ROWID
        return None

    @property
    def has_implicit_rowid(self) -> bool:
        return self.primary_key == ROWID and ROWID not in self.column_names

    @property
    def has_generated_key(self) -> bool:
        """True when the store assigns the key of an inserted row.

        That is the implicit rowid, or a single key column declared exactly
        ``INTEGER`` on a rowid table, which SQLite makes an alias for rowid.
        ``INT PRIMARY KEY`` or any key of a ``WITHOUT ROWID`` table must be
        supplied by the caller.
        """
        if self.has_implicit_rowid:
            return True
        if self.without_rowid or len(self.primary_key_columns) != 1:
            return False
        key = self.column(self.primary_key_columns[0])
        return key is not None and key.type_keyword.upper() == "INTEGER"

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(col.name for col in self.columns)

    def column(self, name: str) -> ColumnDef | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def foreign_key_for(self, column: str) -> ForeignKeyDef | None:
        for fk in self.foreign_keys:
            if fk.column == column:
                return fk
        return None
