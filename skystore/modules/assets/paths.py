"""
Storage key and display name derivation for assets.

Everything here is pure: the same inputs always give the same output, with
no clock or randomness involved. Ingestion relies on this to recompute the
key of an uploaded object when it has to remove it again.
"""
import posixpath
import re
from typing import Mapping

META_FIELDS = ("asset_type", "asset_class", "asset_location_name", "asset_camera", "asset_date_label")

ROOT_PREFIX = "assets"
UNCLASSIFIED = "unclassified"
UNDATED = "undated"

_WS = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"[^0-9]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def normalize_segment(value: str) -> str:
    return _WS.sub("_", value).lower()


def digits_only(value: str) -> str:
    return _NON_DIGIT.sub("", value)


def compact(value: str) -> str:
    return _NON_ALNUM.sub("", value).lower()


def squash_location(value: str) -> str:
    """Storage-normalized location with its underscores dropped, so
    ``Lake House`` and ``lake_house`` both give ``lakehouse``. Other
    punctuation is kept."""
    return normalize_segment(value).replace("_", "")


def split_extension(file_name: str) -> str:
    """Extension of ``file_name`` including the dot, or "" when it has none.

    Dotfiles such as ``.env`` have no extension.
    """
    base = posixpath.basename(file_name.replace("\\", "/"))
    stem, ext = posixpath.splitext(base)
    return ext if stem else ""


def display_basename(file_name: str) -> str:
    return posixpath.basename(file_name.replace("\\", "/"))


def missing_metadata_fields(metadata: Mapping[str, str | None] | None) -> list[str]:
    metadata = metadata or {}
    return [name for name in META_FIELDS if not metadata.get(name)]


def metadata_is_complete(metadata: Mapping[str, str | None] | None) -> bool:
    return metadata is not None and not missing_metadata_fields(metadata)


def derive_storage_path(identity: str, extension: str, metadata: Mapping[str, str] | None = None) -> str:
    stored_filename = f"{identity}{extension}"
    if metadata is None:
        return f"{ROOT_PREFIX}/{UNCLASSIFIED}/{stored_filename}"
    segments = [
        metadata["asset_type"],
        metadata["asset_class"],
        normalize_segment(metadata["asset_location_name"]),
        normalize_segment(metadata["asset_camera"]),
        digits_only(metadata["asset_date_label"]) or UNDATED,
    ]
    return "/".join([ROOT_PREFIX, *segments, stored_filename])


def derive_display_filename(metadata: Mapping[str, str], sequence_index: int, extension: str) -> str:
    """Human readable name, e.g. ``img_family_lakehouse_canonr5_2024-07-01_0007.jpg``."""
    parts = [
        metadata["asset_type"][:3],
        metadata["asset_class"],
        squash_location(metadata["asset_location_name"]),
        compact(metadata["asset_camera"]),
        metadata["asset_date_label"],
        f"{sequence_index:04d}",
    ]
    return "_".join(parts) + extension
