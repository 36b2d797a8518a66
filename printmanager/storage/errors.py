"""Errors raised by the storage layer.

Lookups that find no row raise a NotFoundError subclass, inserts that break a
unique constraint raise a ConstraintViolationError subclass. Callers decide
whether to surface them to the user or log them.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""


class NotFoundError(CatalogError, LookupError):
    """A lookup found no matching row."""

    entity = "Row"

    def __init__(self, key):
        self.key = key
        super().__init__(f"{self.entity} not found: {key!r}")


class ProjectNotFoundError(NotFoundError):
    entity = "Project"


class ProjectFileNotFoundError(NotFoundError):
    entity = "Project file"


class TagNotFoundError(NotFoundError):
    entity = "Tag"


class ConstraintViolationError(CatalogError, ValueError):
    """An insert or update would break a uniqueness rule."""


class DuplicateProjectPathError(ConstraintViolationError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"A project already exists at {path}")


class DuplicateTagError(ConstraintViolationError):
    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Tag already exists: {tag!r}")
