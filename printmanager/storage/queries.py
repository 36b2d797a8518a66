"""Project filter composition.

The same filter drives two call sites: the scanner's existence check (path
only) and the browse screen (name substring plus required tags). Every user
supplied value is passed as a bound parameter.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from sqlalchemy import Select, distinct, func, select

from printmanager.storage.models import Project, ProjectTag, projects_tags

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def tag_text(tag: "str | ProjectTag") -> str:
    """Tag text as stored: surrounding whitespace is never part of a tag."""
    if isinstance(tag, ProjectTag):
        return tag.tag
    return tag.strip()


@dataclass(frozen=True)
class ProjectFilter:
    """Optional filters for a project listing.

    ``tags`` is an intersection: a project matches only if it carries every
    tag in the set. An empty set applies no tag filter; blank tag texts are
    dropped.
    """

    name: str | None = None
    path: str | None = None
    tags: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        name: str | None = None,
        path: str | None = None,
        tags: Iterable["str | ProjectTag"] | None = None,
    ) -> "ProjectFilter":
        return cls(
            name=name or None,
            path=path or None,
            tags=frozenset(text for text in map(tag_text, tags or ()) if text),
        )

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.path is None and not self.tags


def build_project_query(project_filter: ProjectFilter) -> Select:
    """Compose the SELECT for projects matching ``project_filter``, ordered by name."""
    stmt = select(Project)

    if project_filter.name is not None:
        stmt = stmt.where(
            Project.name.like(
                f"%{escape_like(project_filter.name)}%", escape=LIKE_ESCAPE
            )
        )

    if project_filter.path is not None:
        stmt = stmt.where(Project.path == project_filter.path)

    if project_filter.tags:
        stmt = (
            stmt.join(projects_tags, projects_tags.c.project_id == Project.id)
            .join(ProjectTag, ProjectTag.id == projects_tags.c.tag_id)
            .where(ProjectTag.tag.in_(sorted(project_filter.tags)))
            .group_by(Project.id)
            .having(func.count(distinct(ProjectTag.id)) == len(project_filter.tags))
        )

    return stmt.order_by(Project.name, Project.id)
