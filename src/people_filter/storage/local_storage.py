"""File storage for uploaded inputs and produced outputs, rooted in one directory."""

import time
from pathlib import Path

from people_filter.exceptions import ConfigurationError


class LocalStorage:
    def __init__(self, root: Path):
        root.mkdir(parents=True, exist_ok=True)
        self.root = root.resolve()

    def path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise ConfigurationError(f"Storage key escapes the storage root: {key}")
        return path

    def upload(self, data: bytes, file_name: str) -> str:
        key = f"uploads/{int(time.time() * 1000)}-{Path(file_name).name}"
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return key

    def download(self, key: str) -> bytes:
        path = self.path_for(key)
        if not path.is_file():
            raise ConfigurationError(f"No stored file for key: {key}")
        return path.read_bytes()

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
