"""Display images for project files.

Image files are shown as-is. Model files are rendered to PNG by an external
tool (``stl-thumb`` by default) invoked as ``<tool> <model> <image>``, and the
result is cached in a ``.3DPrintManager`` directory next to the model.

The cache is keyed only by file name: a cached thumbnail is reused even if the
model changed afterwards. Delete the cached PNG to force a re-render.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable
import logging
import shutil
import subprocess

from printmanager.catalog.filetypes import is_displayable, is_image_type, is_model_type
from printmanager.storage.models import Project, ProjectFile

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = ".3DPrintManager"
THUMBNAIL_SUFFIX = ".png"
DEFAULT_RENDERER = "stl-thumb"


def generated_image_path(model_path: "str | Path") -> Path:
    """Where the rendered thumbnail for ``model_path`` is cached."""
    model_path = Path(model_path)
    return model_path.parent / CACHE_DIR_NAME / f"{model_path.name}{THUMBNAIL_SUFFIX}"


class ThumbnailRenderer:
    """Runs the external renderer for model files.

    ``executable`` is None when the tool could not be found, in which case
    only already-cached thumbnails are returned.
    """

    def __init__(self, executable: str | None, timeout: float | None = 120.0):
        self.executable = executable
        self.timeout = timeout

    @classmethod
    def discover(
        cls, tool: str = DEFAULT_RENDERER, timeout: float | None = 120.0
    ) -> "ThumbnailRenderer":
        """Resolve ``tool`` on the executable search path."""
        executable = shutil.which(tool)
        if executable is None:
            logger.warning(
                f"Thumbnail renderer {tool!r} not found; model thumbnails are disabled"
            )
        return cls(executable, timeout)

    @property
    def available(self) -> bool:
        return self.executable is not None

    def render(self, model_path: "str | Path") -> Path | None:
        """Return the thumbnail for a model file, rendering it if not cached."""
        target = generated_image_path(model_path)
        if target.exists():
            return target

        if not self.available:
            return None

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create thumbnail directory {target.parent}: {e}")
            return None

        logger.info(f"Creating thumbnail {target}")
        try:
            result = subprocess.run(
                [self.executable, str(model_path), str(target)],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Thumbnail renderer timed out on {model_path}")
            return None
        except OSError as e:
            logger.error(f"Could not run thumbnail renderer for {model_path}: {e}")
            return None

        if result.returncode != 0:
            logger.error(
                f"Thumbnail renderer failed on {model_path} "
                f"(exit {result.returncode}): {result.stderr.strip()}"
            )
            return None
        if not target.exists():
            logger.error(f"Thumbnail renderer produced no image for {model_path}")
            return None
        return target


def image_path_for(
    file_path: "str | Path", renderer: ThumbnailRenderer
) -> Path | None:
    """Displayable image for a file: itself, a rendered thumbnail, or None."""
    if is_image_type(file_path):
        return Path(file_path)
    if is_model_type(file_path):
        return renderer.render(file_path)
    return None


def select_default_image_file(project: Project) -> ProjectFile | None:
    """The file representing a project: its default, else the first displayable one."""
    default = project.default_file
    if default is not None:
        return default
    return next((f for f in project.files if is_displayable(f.path)), None)


def project_image_path(project: Project, renderer: ThumbnailRenderer) -> Path | None:
    project_file = select_default_image_file(project)
    if project_file is None:
        return None
    return image_path_for(project_file.path, renderer)


class ThumbnailQueue:
    """Renders thumbnails on a background thread.

    A helper for presentation layers that must not block while a model
    renders, e.g. to fill in a grid of project cards. ``CatalogApp`` does not
    use it: it resolves the detail image synchronously inside ``dispatch``.

    Each ``submit`` returns a Future; the optional callback receives the image
    path (or None) once rendering finishes and runs on the worker thread, so
    the caller hands the result back to its own thread. In-flight renders are
    not cancelled when the caller loses interest.
    """

    def __init__(self, renderer: ThumbnailRenderer):
        self.renderer = renderer
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="thumbnails"
        )

    def submit(
        self,
        file_path: "str | Path",
        callback: Callable[[Path | None], None] | None = None,
    ) -> "Future[Path | None]":
        future = self._executor.submit(image_path_for, file_path, self.renderer)
        if callback is not None:
            future.add_done_callback(lambda done: callback(done.result()))
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
