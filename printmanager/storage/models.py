"""Catalog database models.

This module maps the tables created by the SQL migrations in
``storage/migrations`` onto SQLAlchemy models. The schema itself is owned by
the migrations, so ``CatalogBase.metadata.create_all`` is never called on the
real database.

Project is the aggregate root: files, tag associations and sources are loaded
together with a project, but live in their own tables related by foreign key.
"""

from pathlib import Path
from typing import List

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class CatalogBase(DeclarativeBase):
    pass


projects_tags = Table(
    "projects_tags",
    CatalogBase.metadata,
    Column("project_id", ForeignKey("projects.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)


class Project(CatalogBase):
    """A cataloged fabrication project, identified by its directory path."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    path: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    notes: Mapped[str] = mapped_column(String, nullable=False, default="")

    # Relationships
    files: Mapped[List["ProjectFile"]] = relationship(
        back_populates="project",
        order_by="ProjectFile.path",
        cascade="all, delete-orphan",
    )
    tags: Mapped[List["ProjectTag"]] = relationship(
        secondary=projects_tags,
        order_by="ProjectTag.tag",
    )
    sources: Mapped[List["ProjectSource"]] = relationship(
        back_populates="project",
        order_by="ProjectSource.id",
        cascade="all, delete-orphan",
    )

    @property
    def default_file(self) -> "ProjectFile | None":
        return next((f for f in self.files if f.is_default), None)

    def relative_path(self, file: "ProjectFile") -> str:
        """Path of a member file relative to the project directory."""
        try:
            return str(Path(file.path).relative_to(self.path))
        except ValueError:
            return file.path

    def __repr__(self):
        return f"Project(id={self.id}, name={self.name!r}, path={self.path!r})"


class ProjectFile(CatalogBase):
    """A file discovered inside a project's directory tree.

    For text-type files the notes are the file content itself (see
    catalog/notes.py); the ``notes`` column is only used for other types.
    """

    __tablename__ = "project_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str] = mapped_column(String, nullable=False, default="")
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    is_default: Mapped[bool] = mapped_column(
        "isdefault", Boolean, nullable=False, default=False
    )

    project: Mapped["Project"] = relationship(back_populates="files")

    __table_args__ = (
        Index("idx_project_files_project", "project_id"),
        UniqueConstraint("project_id", "path"),
    )

    @property
    def name(self) -> str:
        return Path(self.path).name

    def __repr__(self):
        return f"ProjectFile(id={self.id}, path={self.path!r}, default={self.is_default})"


class ProjectTag(CatalogBase):
    """A label shared between projects. Tag text is globally unique."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag: Mapped[str] = mapped_column(String, nullable=False, unique=True)

    def __repr__(self):
        return f"ProjectTag(id={self.id}, tag={self.tag!r})"


class ProjectSource(CatalogBase):
    """A named external URL for a project, e.g. the model's download page."""

    __tablename__ = "project_sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")

    project: Mapped["Project"] = relationship(back_populates="sources")

    def __repr__(self):
        return f"ProjectSource(id={self.id}, name={self.name!r}, url={self.url!r})"
