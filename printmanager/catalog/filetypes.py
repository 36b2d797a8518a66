"""File classification by extension.

Categories are checked independently; a file is "displayable" when it is an
image or a model that can be rendered to one.
"""

from enum import Enum
from pathlib import Path

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif"})
MODEL_EXTENSIONS = frozenset({".stl", ".3mf"})
TEXT_EXTENSIONS = frozenset({".txt", ".md", ".json", ".toml", ".yaml", ".yml", ".ini"})


class FileCategory(str, Enum):
    """Allowed values for a file's category."""

    IMAGE = "image"
    MODEL = "model"
    TEXT = "text"
    OTHER = "other"


def _suffix(path: "str | Path") -> str:
    return Path(path).suffix.lower()


def is_image_type(path: "str | Path") -> bool:
    return _suffix(path) in IMAGE_EXTENSIONS


def is_model_type(path: "str | Path") -> bool:
    """True for model files a thumbnail can be generated from."""
    return _suffix(path) in MODEL_EXTENSIONS


def is_text_type(path: "str | Path") -> bool:
    """True for plain-text files whose notes are their content."""
    return _suffix(path) in TEXT_EXTENSIONS


def is_displayable(path: "str | Path") -> bool:
    return is_image_type(path) or is_model_type(path)


def classify(path: "str | Path") -> FileCategory:
    if is_image_type(path):
        return FileCategory.IMAGE
    if is_model_type(path):
        return FileCategory.MODEL
    if is_text_type(path):
        return FileCategory.TEXT
    return FileCategory.OTHER
