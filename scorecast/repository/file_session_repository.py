"""
File-backed session persistence.

Layout under the repository directory:

    <name>.json                                  latest save
    backups/<name>/<name>_YYYYmmdd_HHMMSS.json   timestamped backups

Files hold the msgspec JSON encoding of the SessionState. Writes go to a
temporary file first and are renamed into place, so a crash mid-write
never leaves a truncated save behind.
"""

import datetime
import os
import pathlib

import msgspec

from scorecast.errors import RepositoryError
from scorecast.models import SessionState


BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class FileSessionRepository:
    def __init__(
        self,
        repository_directory: str | pathlib.Path = "data/repository",
        extension: str = ".json",
    ) -> None:
        self.repository_directory = pathlib.Path(repository_directory)
        self.extension = extension if extension.startswith(".") else f".{extension}"

        self._encoder = msgspec.json.Encoder()
        self._decoder = msgspec.json.Decoder(SessionState)

    @property
    def backups_directory(self) -> pathlib.Path:
        return self.repository_directory / "backups"

    def save(self, state: SessionState) -> pathlib.Path:
        path = self.primary_path(state.name)
        self._write(path, state)

        return path

    def backup(self, state: SessionState) -> pathlib.Path:
        path = self.backup_path(state.name)
        self._write(path, state)

        return path

    def load(self, name: str) -> SessionState:
        return self.load_path(self.primary_path(name))

    def load_path(self, path: str | pathlib.Path) -> SessionState:
        path = pathlib.Path(path)

        try:
            return self._decoder.decode(path.read_bytes())

        except FileNotFoundError as err:
            raise RepositoryError(
                f"Err. - no saved session at {path}",
                path=str(path),
            ) from err

        except (msgspec.DecodeError, msgspec.ValidationError) as err:
            raise RepositoryError(
                f"Err. - could not read saved session at {path}: {err}",
                path=str(path),
            ) from err

    def list_saves(self) -> list[str]:
        if not self.repository_directory.exists():
            return []

        return sorted(
            path.stem for path in self.repository_directory.iterdir()
            if path.is_file() and path.suffix == self.extension
        )

    def list_backups(self, name: str) -> list[pathlib.Path]:
        directory = self.backups_directory / name
        if not directory.exists():
            return []

        return sorted(
            path for path in directory.iterdir()
            if path.is_file() and path.suffix == self.extension
        )

    def primary_path(self, name: str) -> pathlib.Path:
        return self.repository_directory / f"{name}{self.extension}"

    def backup_path(self, name: str) -> pathlib.Path:
        timestamp = datetime.datetime.now().strftime(BACKUP_TIMESTAMP_FORMAT)
        directory = self.backups_directory / name

        path = directory / f"{name}_{timestamp}{self.extension}"

        # Two backups in the same second get a numeric suffix.
        counter = 1
        while path.exists():
            path = directory / f"{name}_{timestamp}_{counter}{self.extension}"
            counter += 1

        return path

    def _write(self, path: pathlib.Path, state: SessionState):
        path.parent.mkdir(parents=True, exist_ok=True)

        temporary_path = path.with_name(f".{path.name}.tmp")
        temporary_path.write_bytes(self._encoder.encode(state))
        os.replace(temporary_path, path)
