import logging
from pathlib import Path
from typing import List

import typer

from printmanager.catalog.filetypes import classify
from printmanager.catalog.notes import read_file_notes, save_file_notes
from printmanager.catalog.reconcile import scan_project_dirs
from printmanager.catalog.thumbnails import ThumbnailRenderer, project_image_path
from printmanager.storage.errors import CatalogError
from printmanager.storage.manager import StorageManager
from printmanager.storage.models import Project
from printmanager.utils.logging_config import setup_logging
from printmanager.utils.settings import (
    THEMES,
    EnvironmentSettings,
    load_settings,
    save_settings,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="printmanager",
    help="Catalog and browse 3D print project directories.",
    no_args_is_help=True,
)
tag_app = typer.Typer(help="Attach, detach and list tags.", no_args_is_help=True)
source_app = typer.Typer(help="Manage project source links.", no_args_is_help=True)
file_app = typer.Typer(help="Manage project files.", no_args_is_help=True)
settings_app = typer.Typer(help="View and change user settings.", no_args_is_help=True)

app.add_typer(tag_app, name="tag")
app.add_typer(source_app, name="source")
app.add_typer(file_app, name="file")
app.add_typer(settings_app, name="settings")


def _environment() -> EnvironmentSettings:
    env = EnvironmentSettings()
    setup_logging(env.config_dir / "logs", env.log_level)
    return env


def _open_storage(env: EnvironmentSettings) -> StorageManager:
    return StorageManager(env.config_dir)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _get_project(storage: StorageManager, project_id: int) -> Project:
    try:
        return storage.get_project(project_id)
    except CatalogError as e:
        _fail(str(e))


def _echo_project_line(project: Project) -> None:
    tags = ", ".join(t.tag for t in project.tags)
    suffix = f"  [{tags}]" if tags else ""
    typer.echo(f"{project.id:>5}  {project.name}  ({project.path}){suffix}")


@app.command()
def scan(
    refresh: bool = typer.Option(
        False,
        "--refresh",
        "-r",
        help="Also re-sync the files of projects that are already cataloged.",
    ),
):
    """
    Scan the watched directories and catalog new project folders.
    """
    env = _environment()
    settings = load_settings(env.config_dir)
    if settings.print_paths_empty():
        _fail("No project directories configured. Use 'settings add-dir' first.")

    storage = _open_storage(env)
    result = scan_project_dirs(storage, settings.print_paths, refresh=refresh)
    for project in result.created:
        typer.echo(f"+ {project.name} ({project.path})")
    for path, message in result.errors:
        typer.echo(f"! {path}: {message}", err=True)
    typer.echo(f"Scan complete: {len(result.created)} new projects.")


@app.command("list")
def list_projects(
    name: str = typer.Option(None, "--name", "-n", help="Substring of the project name."),
    tags: List[str] = typer.Option(
        None, "--tag", "-t", help="Only projects carrying this tag (repeatable)."
    ),
):
    """
    List cataloged projects, optionally filtered by name and tags.
    """
    env = _environment()
    storage = _open_storage(env)
    projects = storage.get_filtered_projects(name=name, tags=tags)
    for project in projects:
        _echo_project_line(project)
    typer.echo(f"{len(projects)} projects")


@app.command()
def show(project_id: int = typer.Argument(...)):
    """
    Show a project with its files, tags and sources.
    """
    env = _environment()
    storage = _open_storage(env)
    project = _get_project(storage, project_id)

    typer.echo(f"{project.name}\n{project.path}")
    if project.notes:
        typer.echo(f"\n{project.notes}")
    if project.tags:
        typer.echo("\nTags: " + ", ".join(t.tag for t in project.tags))
    if project.sources:
        typer.echo("\nSources:")
        for source in project.sources:
            typer.echo(f"  {source.name}: {source.url}")
    typer.echo("\nFiles:")
    for project_file in project.files:
        marker = "*" if project_file.is_default else " "
        category = classify(project_file.path).value
        typer.echo(
            f" {marker}{project_file.id:>5}  {category:<6}  {project.relative_path(project_file)}"
        )


@app.command()
def notes(project_id: int = typer.Argument(...), text: str = typer.Argument(...)):
    """
    Replace a project's notes.
    """
    env = _environment()
    storage = _open_storage(env)
    project = _get_project(storage, project_id)
    project.notes = text
    storage.update_project(project)
    typer.echo("Notes saved.")


@app.command()
def thumbnail(project_id: int = typer.Argument(...)):
    """
    Print the display image of a project, rendering it if needed.
    """
    env = _environment()
    storage = _open_storage(env)
    project = _get_project(storage, project_id)
    renderer = ThumbnailRenderer.discover(env.thumbnail_tool, env.thumbnail_timeout)
    image = project_image_path(project, renderer)
    if image is None:
        _fail(f"No image available for {project.name}")
    typer.echo(str(image))


@app.command("open")
def open_path(path: Path = typer.Argument(..., exists=True, resolve_path=True)):
    """
    Open a file or directory with the system's default application.
    """
    typer.launch(str(path))


@tag_app.command("add")
def tag_add(project_id: int = typer.Argument(...), text: str = typer.Argument(...)):
    """Attach a tag to a project, creating the tag on first use."""
    env = _environment()
    storage = _open_storage(env)
    project = _get_project(storage, project_id)
    try:
        project = storage.add_tag_to_project(project, text)
    except ValueError as e:
        _fail(str(e))
    typer.echo(f"{project.name}: " + ", ".join(t.tag for t in project.tags))


@tag_app.command("remove")
def tag_remove(project_id: int = typer.Argument(...), text: str = typer.Argument(...)):
    """Detach a tag from a project. The tag stays available."""
    env = _environment()
    storage = _open_storage(env)
    project = _get_project(storage, project_id)
    try:
        project = storage.remove_tag_from_project(project, text)
    except CatalogError as e:
        _fail(str(e))
    typer.echo(f"{project.name}: " + ", ".join(t.tag for t in project.tags))


@tag_app.command("list")
def tag_list():
    """List every known tag."""
    env = _environment()
    storage = _open_storage(env)
    for tag in storage.list_all_tags():
        typer.echo(tag.tag)


@source_app.command("add")
def source_add(
    project_id: int = typer.Argument(...),
    name: str = typer.Argument(...),
    url: str = typer.Argument(...),
):
    """Attach a named source URL to a project."""
    env = _environment()
    storage = _open_storage(env)
    project = storage.add_source(_get_project(storage, project_id), name, url)
    typer.echo(f"{project.name}: {len(project.sources)} sources")


@file_app.command("default")
def file_default(file_id: int = typer.Argument(...)):
    """Make a file its project's representative image source."""
    env = _environment()
    storage = _open_storage(env)
    try:
        project_file = storage.set_default_file(storage.get_project_file(file_id))
    except CatalogError as e:
        _fail(str(e))
    typer.echo(f"Default file: {project_file.path}")


@file_app.command("notes")
def file_notes(
    file_id: int = typer.Argument(...),
    text: str = typer.Argument(None, help="New notes. Omit to print the current notes."),
):
    """Show or replace a file's notes. Text files hold their notes as content."""
    env = _environment()
    storage = _open_storage(env)
    try:
        project_file = storage.get_project_file(file_id)
        if text is None:
            typer.echo(read_file_notes(project_file))
            return
        save_file_notes(storage, project_file, text)
    except (CatalogError, OSError) as e:
        _fail(str(e))
    typer.echo("Notes saved.")


@settings_app.command("show")
def settings_show():
    """Print the current settings."""
    env = _environment()
    settings = load_settings(env.config_dir)
    typer.echo(f"Theme: {settings.get_theme()}")
    typer.echo("Project directories:")
    for path in settings.print_paths:
        typer.echo(f"  {path}")


@settings_app.command("add-dir")
def settings_add_dir(
    path: Path = typer.Argument(
        ..., exists=True, file_okay=False, dir_okay=True, resolve_path=True
    ),
):
    """Watch a directory whose subfolders are projects."""
    env = _environment()
    settings = load_settings(env.config_dir)
    if not settings.add_print_path(str(path)):
        typer.echo(f"Already watching {path}")
        return
    save_settings(settings, env.config_dir)
    typer.echo(f"Watching {path}")


@settings_app.command("remove-dir")
def settings_remove_dir(path: str = typer.Argument(...)):
    """Stop watching a directory. Its projects stay cataloged."""
    env = _environment()
    settings = load_settings(env.config_dir)
    if not settings.remove_print_path(path):
        _fail(f"Not watching {path}")
    save_settings(settings, env.config_dir)
    typer.echo(f"No longer watching {path}")


@settings_app.command("theme")
def settings_theme(theme: str = typer.Argument(...)):
    """Set the color theme."""
    if theme not in THEMES:
        _fail(f"Unknown theme {theme!r}. Choose one of: {', '.join(THEMES)}")
    env = _environment()
    settings = load_settings(env.config_dir)
    settings.set_theme(theme)
    save_settings(settings, env.config_dir)
    typer.echo(f"Theme set to {theme}")


if __name__ == "__main__":
    app()
