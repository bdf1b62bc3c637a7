class DbReplaceError(Exception):
    """Base exception for dbreplace errors."""


class ConfigurationError(DbReplaceError):
    """The replacement job was configured with conflicting or invalid options."""


class SchemaError(DbReplaceError):
    """A table could not be introspected (usually because it does not exist)."""


class ExportError(DbReplaceError):
    """The export destination could not be opened or written."""


class ParseError(DbReplaceError):
    """A value is not in the serialized format."""
