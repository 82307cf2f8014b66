class GroupingError(Exception):
    """Base class for grouping errors."""
    pass

class InvalidGroupModeError(GroupingError):
    """Grouping was requested with no grouping mode enabled."""
    pass

class InvalidBaseDirectoryError(GroupingError):
    """The base directory is not a parseable library address."""
    pass

class LibraryUrlError(ValueError):
    """A path could not be parsed as a library URL."""
    pass

class CatalogError(Exception):
    """Errors reading or validating a media library file."""
    pass
