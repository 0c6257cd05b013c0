"""Storage destination for decoded filing documents.

Folders are addressed by opaque ids. The local backend maps a client's
destination id to a directory under ``root_dir`` and behaves like a cloud
drive: creating a folder or file whose name already exists adds a new
sibling instead of reusing it.
"""

import logging
import os
import re
from abc import ABC, abstractmethod

from .models import OutputFile

logger = logging.getLogger("egov_scraper")


class Storage(ABC):
    @abstractmethod
    def get_folder(self, folder_id: str) -> str:
        """Resolve a folder id, raising if it cannot be used."""
        ...

    @abstractmethod
    def create_folder(self, parent_id: str, name: str) -> str:
        """Create a child folder and return its id."""
        ...

    @abstractmethod
    def create_file(self, folder_id: str, file: OutputFile) -> str:
        """Store a file in a folder and return its id."""
        ...


_UNSAFE = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def safe_name(name: str) -> str:
    cleaned = _UNSAFE.sub("_", name).strip(" .")
    return cleaned or "unnamed"


def _unique_path(parent: str, name: str) -> str:
    path = os.path.join(parent, name)
    if not os.path.exists(path):
        return path
    stem, ext = os.path.splitext(name)
    if os.path.isdir(path):
        stem, ext = name, ""
    n = 2
    while os.path.exists(os.path.join(parent, f"{stem} ({n}){ext}")):
        n += 1
    return os.path.join(parent, f"{stem} ({n}){ext}")


class LocalFolderStorage(Storage):
    def __init__(self, root_dir: str = "data/drive"):
        self.root_dir = root_dir

    def _path(self, folder_id: str) -> str:
        path = os.path.normpath(os.path.join(self.root_dir, folder_id))
        root = os.path.normpath(self.root_dir)
        if os.path.commonpath([root, path]) != root:
            raise ValueError(f"folder id escapes storage root: {folder_id!r}")
        return path

    def get_folder(self, folder_id: str) -> str:
        if not folder_id:
            raise ValueError("empty folder id")
        path = self._path(folder_id)
        os.makedirs(path, exist_ok=True)
        return folder_id

    def create_folder(self, parent_id: str, name: str) -> str:
        parent = self._path(parent_id)
        path = _unique_path(parent, safe_name(name))
        os.makedirs(path)
        logger.debug(f"Created folder {path}")
        return os.path.relpath(path, self.root_dir)

    def create_file(self, folder_id: str, file: OutputFile) -> str:
        folder = self._path(folder_id)
        path = _unique_path(folder, safe_name(file.name))
        with open(path, "wb") as f:
            f.write(file.content)
        return os.path.relpath(path, self.root_dir)
