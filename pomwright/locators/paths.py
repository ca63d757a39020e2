"""Path algebra over dot-delimited locator schema paths."""

from __future__ import annotations

from typing import Mapping, NamedTuple, Optional


class PathIndexPair(NamedTuple):
    path: str
    index: Optional[int] = None


def validate_path(path: str) -> None:
    """Reject empty paths and paths with empty segments."""
    if not isinstance(path, str) or not path:
        raise ValueError(f"Locator schema path must be a non-empty string, got {path!r}")
    if any(not segment for segment in path.split(".")):
        raise ValueError(f"Locator schema path '{path}' contains an empty segment")


def sub_paths_of(path: str) -> list[str]:
    """Return the progressively extended prefixes of ``path``.

    ``sub_paths_of("body.section@playground.button")`` gives
    ``["body", "body.section@playground", "body.section@playground.button"]``.
    """
    sub_paths: list[str] = []
    cumulative = ""
    for segment in path.split("."):
        cumulative = f"{cumulative}.{segment}" if cumulative else segment
        sub_paths.append(cumulative)
    return sub_paths


def is_valid_sub_path(candidate: str, full_path: str) -> bool:
    return candidate == full_path or full_path.startswith(f"{candidate}.")


def segment_index_of(path: str, sub_path: str) -> Optional[int]:
    """Chain position of ``sub_path`` within ``sub_paths_of(path)``, or None."""
    if not is_valid_sub_path(sub_path, path):
        return None
    return sub_path.count(".")


def extract_path_index_pairs(
    path: str, indices: Optional[Mapping[int, int]] = None,
) -> list[PathIndexPair]:
    """Pair each sub-path of ``path`` with the occurrence index requested for its chain position."""
    indices = indices or {}
    return [
        PathIndexPair(sub_path, indices.get(position))
        for position, sub_path in enumerate(sub_paths_of(path))
    ]
