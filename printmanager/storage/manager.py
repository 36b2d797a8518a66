"""Storage manager for the catalog database.

This module provides the single interface to the SQLite catalog: it owns the
engine, runs schema migrations on startup, and exposes CRUD and query
operations over projects, files, tags and sources.

Projects are returned as detached aggregates with ``files``, ``tags`` and
``sources`` loaded, so callers can keep reading them after the session that
produced them has closed.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List
import logging

from sqlalchemy import create_engine, delete, event, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from printmanager.storage.errors import (
    DuplicateProjectPathError,
    DuplicateTagError,
    ProjectFileNotFoundError,
    ProjectNotFoundError,
    TagNotFoundError,
)
from printmanager.storage.migrator import run_migrations
from printmanager.storage.models import (
    Project,
    ProjectFile,
    ProjectSource,
    ProjectTag,
    projects_tags,
)
from printmanager.storage.queries import ProjectFilter, build_project_query, tag_text
from printmanager.utils.settings import DATABASE_FILE_NAME, EnvironmentSettings

logger = logging.getLogger(__name__)


# SQLite only enforces foreign keys when asked to, on every connection.
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key enforcement for every new SQLite connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _project_load_options():
    return (
        selectinload(Project.files),
        selectinload(Project.tags),
        selectinload(Project.sources),
    )


@dataclass(frozen=True)
class FileSyncResult:
    """Outcome of reconciling a project's known files against the filesystem."""

    project_id: int
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class StorageManager:
    """Manager for the catalog database.

    Usage:
        manager = StorageManager(config_dir)
        project = manager.create_project("Vase", "/models/Vase")
        manager.add_tag_to_project(project, "Printed")

    IMPORTANT:
    - The manager is not thread-safe; use it from one thread at a time.
    - Lookups of a missing row raise a NotFoundError subclass.
    - Every write commits before the method returns.
    """

    def __init__(self, database_dir: Path | None = None):
        """Open (and migrate) the catalog database.

        Args:
            database_dir: Directory holding the database file. Defaults to the
                per-user configuration directory.
        """
        if database_dir is None:
            database_dir = EnvironmentSettings().config_dir
        self.database_path = Path(database_dir) / DATABASE_FILE_NAME
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(f"sqlite:///{self.database_path}")
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

        self.applied_migrations = run_migrations(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get a SQLAlchemy session; uncommitted work is rolled back on exit."""
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    # Projects

    def _load_project(self, session: Session, project_id: int) -> Project:
        project = session.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(*_project_load_options())
        ).scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def get_project(self, project_id: int) -> Project:
        """Load a project with its files (ordered by path), tags and sources.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        with self.get_session() as session:
            return self._load_project(session, project_id)

    def create_project(self, name: str, path: str, notes: str = "") -> Project:
        """Insert a project and return the freshly loaded aggregate.

        Raises:
            DuplicateProjectPathError: If a project already uses ``path``
        """
        with self.get_session() as session:
            project = Project(name=name, path=path, notes=notes or "")
            session.add(project)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateProjectPathError(path) from e
            project_id = project.id

        logger.info(f"Created project {name!r} at {path}")
        return self.get_project(project_id)

    def get_filtered_projects(
        self,
        name: str | None = None,
        path: str | None = None,
        tags: Iterable["str | ProjectTag"] | None = None,
    ) -> List[Project]:
        """List projects matching every given filter, ordered by name.

        Args:
            name: Substring the project name must contain
            path: Exact project path
            tags: Tags the project must carry, all of them
        """
        project_filter = ProjectFilter.build(name=name, path=path, tags=tags)
        stmt = build_project_query(project_filter).options(*_project_load_options())
        with self.get_session() as session:
            return list(session.execute(stmt).scalars().unique())

    def find_project_by_path(self, path: str) -> Project | None:
        projects = self.get_filtered_projects(path=path)
        return projects[0] if projects else None

    def project_exists(self, path: str) -> bool:
        return self.find_project_by_path(path) is not None

    def update_project(self, project: Project) -> Project:
        """Persist name, notes and path changes and return the reloaded project."""
        with self.get_session() as session:
            stored = session.get(Project, project.id)
            if stored is None:
                raise ProjectNotFoundError(project.id)
            stored.name = project.name
            stored.notes = project.notes or ""
            stored.path = project.path
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateProjectPathError(project.path) from e

        return self.get_project(project.id)

    # Files

    def update_project_files(
        self, project: Project, live_file_paths: Iterable[str]
    ) -> FileSyncResult:
        """Make the project's known files equal to ``live_file_paths``.

        Paths present on disk but unknown are inserted, known paths no longer
        on disk are deleted. Nothing is written when both sets are empty.
        """
        live = set(live_file_paths)
        with self.get_session() as session:
            if session.get(Project, project.id) is None:
                raise ProjectNotFoundError(project.id)

            known = set(
                session.execute(
                    select(ProjectFile.path).where(ProjectFile.project_id == project.id)
                ).scalars()
            )
            to_add = sorted(live - known)
            to_remove = sorted(known - live)
            result = FileSyncResult(project.id, added=to_add, removed=to_remove)
            if not result.changed:
                return result

            if to_add:
                session.execute(
                    insert(ProjectFile),
                    [
                        {"project_id": project.id, "path": path, "notes": "", "is_default": False}
                        for path in to_add
                    ],
                )
            if to_remove:
                session.execute(
                    delete(ProjectFile)
                    .where(ProjectFile.project_id == project.id)
                    .where(ProjectFile.path.in_(to_remove))
                )
            session.commit()

        logger.info(f"{project.name} added files: {to_add}")
        logger.info(f"{project.name} deleted files: {to_remove}")
        return result

    def get_project_file(self, file_id: int) -> ProjectFile:
        with self.get_session() as session:
            project_file = session.get(ProjectFile, file_id)
            if project_file is None:
                raise ProjectFileNotFoundError(file_id)
            return project_file

    def update_project_file(self, project_file: ProjectFile) -> ProjectFile:
        """Persist path, notes and the default flag of a file.

        Setting ``is_default`` clears the flag on every other file of the same
        project in the same transaction, so a project never has two defaults.
        """
        with self.get_session() as session:
            stored = session.get(ProjectFile, project_file.id)
            if stored is None:
                raise ProjectFileNotFoundError(project_file.id)

            if project_file.is_default:
                session.execute(
                    update(ProjectFile)
                    .where(ProjectFile.project_id == stored.project_id)
                    .where(ProjectFile.id != stored.id)
                    .values(is_default=False)
                )
            stored.path = project_file.path
            stored.notes = project_file.notes or ""
            stored.is_default = bool(project_file.is_default)
            session.commit()

        return self.get_project_file(project_file.id)

    def set_default_file(self, project_file: ProjectFile) -> ProjectFile:
        project_file.is_default = True
        return self.update_project_file(project_file)

    # Tags

    @staticmethod
    def _clean_tag(text: str) -> str:
        cleaned = text.strip()
        if not cleaned:
            raise ValueError("Tag text must not be empty")
        return cleaned

    def _find_tag(self, session: Session, text: str) -> ProjectTag | None:
        return session.execute(
            select(ProjectTag).where(ProjectTag.tag == text)
        ).scalar_one_or_none()

    def _get_or_create_tag(self, session: Session, text: str) -> ProjectTag:
        tag = self._find_tag(session, text)
        if tag is None:
            tag = ProjectTag(tag=text)
            session.add(tag)
            session.flush()
        return tag

    def create_tag(self, text: str) -> ProjectTag:
        """Insert a new tag.

        Raises:
            DuplicateTagError: If the tag text already exists
        """
        text = self._clean_tag(text)
        with self.get_session() as session:
            tag = ProjectTag(tag=text)
            session.add(tag)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateTagError(text) from e
            return tag

    def get_or_create_tag(self, text: str) -> ProjectTag:
        """Return the tag with this exact text, inserting it if absent."""
        text = self._clean_tag(text)
        with self.get_session() as session:
            tag = self._get_or_create_tag(session, text)
            session.commit()
            return tag

    def get_tag(self, tag_id: int) -> ProjectTag:
        with self.get_session() as session:
            tag = session.get(ProjectTag, tag_id)
            if tag is None:
                raise TagNotFoundError(tag_id)
            return tag

    def list_all_tags(self) -> List[ProjectTag]:
        with self.get_session() as session:
            return list(
                session.execute(select(ProjectTag).order_by(ProjectTag.tag)).scalars()
            )

    def add_tag_to_project(self, project: Project, text: str) -> Project:
        """Attach a tag (created on first use) to a project. Idempotent."""
        text = self._clean_tag(text)
        with self.get_session() as session:
            if session.get(Project, project.id) is None:
                raise ProjectNotFoundError(project.id)
            tag = self._get_or_create_tag(session, text)
            exists = session.execute(
                select(projects_tags.c.tag_id)
                .where(projects_tags.c.project_id == project.id)
                .where(projects_tags.c.tag_id == tag.id)
            ).first()
            if exists is None:
                session.execute(
                    insert(projects_tags).values(project_id=project.id, tag_id=tag.id)
                )
            session.commit()

        return self.get_project(project.id)

    def remove_tag_from_project(
        self, project: Project, tag: "ProjectTag | str"
    ) -> Project:
        """Detach a tag from a project. The tag row itself is kept."""
        with self.get_session() as session:
            if isinstance(tag, ProjectTag):
                tag_id = tag.id
            else:
                stored_tag = self._find_tag(session, tag_text(tag))
                if stored_tag is None:
                    raise TagNotFoundError(tag)
                tag_id = stored_tag.id
            session.execute(
                delete(projects_tags)
                .where(projects_tags.c.project_id == project.id)
                .where(projects_tags.c.tag_id == tag_id)
            )
            session.commit()

        return self.get_project(project.id)

    # Sources

    def add_source(self, project: Project, name: str, url: str) -> Project:
        with self.get_session() as session:
            if session.get(Project, project.id) is None:
                raise ProjectNotFoundError(project.id)
            session.add(ProjectSource(project_id=project.id, name=name, url=url))
            session.commit()

        return self.get_project(project.id)
