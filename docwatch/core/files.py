from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import BinaryIO


DEFAULT_SUBDIRS = [
    "store",
    "documents",
    "reports",
]


def _base_root() -> Path:
    env_root = os.getenv("DOCWATCH_DATA_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()
    return Path(__file__).resolve().parents[2] / "data"


def ensure_data_root() -> Path:
    """Ensure data folders exist and return the root path."""

    root = _base_root()
    for sub in DEFAULT_SUBDIRS:
        (root / sub).mkdir(parents=True, exist_ok=True)
    return root


def save_document_file(company_id: str, kind: str, source: BinaryIO) -> str:
    """Persist an uploaded PDF and return its path relative to the data root."""

    root = ensure_data_root()
    relative = Path("documents") / Path(company_id).name / f"{kind}.pdf"
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("wb") as buffer:
        shutil.copyfileobj(source, buffer)
    return relative.as_posix()


def resolve_document_file(relative: str) -> Path | None:
    """Return the absolute path of a stored document if it lies inside the data root."""

    root = ensure_data_root().resolve()
    candidate = (root / Path(relative)).resolve()
    if not candidate.is_relative_to(root):
        return None
    return candidate


def remove_company_files(company_id: str) -> None:
    folder = ensure_data_root() / "documents" / Path(company_id).name
    if folder.exists():
        shutil.rmtree(folder)
