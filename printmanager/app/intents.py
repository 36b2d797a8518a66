"""User intents emitted by the presentation layer."""

from dataclasses import dataclass


# Screen switching


@dataclass(frozen=True)
class ShowBrowsing:
    pass


@dataclass(frozen=True)
class ShowSettings:
    pass


# Browsing


@dataclass(frozen=True)
class ScanProjectDirs:
    refresh: bool = False


@dataclass(frozen=True)
class FilterChanged:
    text: str


@dataclass(frozen=True)
class FilterTagToggle:
    tag: str


@dataclass(frozen=True)
class SelectProject:
    project_id: int


# Project detail


@dataclass(frozen=True)
class OpenPath:
    path: str


@dataclass(frozen=True)
class RenameProject:
    name: str


@dataclass(frozen=True)
class SaveProjectNotes:
    notes: str


@dataclass(frozen=True)
class AddTag:
    text: str


@dataclass(frozen=True)
class RemoveTag:
    tag_id: int


@dataclass(frozen=True)
class AddSource:
    name: str
    url: str


@dataclass(frozen=True)
class SetDefaultFile:
    file_id: int


@dataclass(frozen=True)
class SaveFileNotes:
    file_id: int
    text: str


# Settings


@dataclass(frozen=True)
class SetTheme:
    theme: str


@dataclass(frozen=True)
class AddProjectDirectory:
    path: str


@dataclass(frozen=True)
class RemoveProjectDirectory:
    path: str


@dataclass(frozen=True)
class SaveSettings:
    pass


@dataclass(frozen=True)
class CancelSettings:
    pass
