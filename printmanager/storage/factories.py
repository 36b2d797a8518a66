"""factory_boy factories for catalog models.

Fixtures in conftest.py bind ``_meta.sqlalchemy_session`` to a session from a
StorageManager before the factories are used.
"""

import factory
from factory.alchemy import SQLAlchemyModelFactory

from printmanager.storage.models import Project, ProjectFile, ProjectSource, ProjectTag


class BaseFactory(SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"


class ProjectFactory(BaseFactory):
    class Meta:
        model = Project

    name = factory.Faker("word")
    path = factory.Sequence(lambda n: f"/prints/project_{n}")
    notes = ""


class ProjectFileFactory(BaseFactory):
    class Meta:
        model = ProjectFile

    project = factory.SubFactory(ProjectFactory)
    path = factory.LazyAttributeSequence(lambda o, n: f"{o.project.path}/part_{n}.stl")
    notes = ""
    is_default = False


class ProjectTagFactory(BaseFactory):
    class Meta:
        model = ProjectTag

    tag = factory.Sequence(lambda n: f"tag-{n}")


class ProjectSourceFactory(BaseFactory):
    class Meta:
        model = ProjectSource

    project = factory.SubFactory(ProjectFactory)
    name = factory.Faker("company")
    url = factory.Faker("url")
