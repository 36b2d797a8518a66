"""Shared test fixtures"""

import os
import random
from pathlib import Path

import pytest
from faker import Faker

from printmanager.catalog.thumbnails import CACHE_DIR_NAME, ThumbnailRenderer
from printmanager.storage.factories import (
    ProjectFactory,
    ProjectFileFactory,
    ProjectSourceFactory,
    ProjectTagFactory,
)
from printmanager.storage.manager import StorageManager

FACTORIES = (ProjectFactory, ProjectFileFactory, ProjectSourceFactory, ProjectTagFactory)


@pytest.fixture(scope="session", autouse=True)
def setup_factory_seed():
    """Configure factory_boy/Faker to use a deterministic seed for reproducibility.

    The seed can be set via FACTORY_SEED environment variable, or will be
    randomly generated. The seed is printed to stdout for reproducibility.
    """
    seed = os.environ.get("FACTORY_SEED")
    if seed:
        seed = int(seed)
    else:
        seed = random.randint(0, 2**32 - 1)

    print(f"\n{'=' * 70}")
    print(f"Factory seed: {seed}")
    print(f"To reproduce this test run, set: FACTORY_SEED={seed}")
    print(f"{'=' * 70}\n")

    Faker.seed(seed)
    random.seed(seed)

    return seed


@pytest.fixture
def config_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("config")


@pytest.fixture
def storage_manager(config_dir: Path):
    """Create a StorageManager with a temporary database."""
    manager = StorageManager(database_dir=config_dir)
    yield manager
    manager.close()


@pytest.fixture
def storage_session(storage_manager: StorageManager):
    """Create a session backed by StorageManager and bind the factories to it."""
    with storage_manager.get_session() as session:
        for factory_class in FACTORIES:
            factory_class._meta.sqlalchemy_session = session  # type: ignore[misc]
        yield session
    for factory_class in FACTORIES:
        factory_class._meta.sqlalchemy_session = None  # type: ignore[misc]


def _make_files(root: Path, relative_paths) -> list[Path]:
    created = []
    for rel_path in relative_paths:
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"content of {rel_path}")
        created.append(path)
    return created


@pytest.fixture
def make_files():
    """Create files (and their parent directories) below a root."""
    return _make_files


@pytest.fixture
def models_root(tmp_path: Path) -> Path:
    """A watched root holding a single 'Vase' project.

    models/
      Vase/
        vase.stl
        notes.txt
        .3DPrintManager/vase.stl.png
    """
    root = tmp_path / "models"
    _make_files(
        root / "Vase",
        ["vase.stl", "notes.txt", f"{CACHE_DIR_NAME}/vase.stl.png"],
    )
    return root


@pytest.fixture
def missing_renderer() -> ThumbnailRenderer:
    return ThumbnailRenderer(executable=None)
