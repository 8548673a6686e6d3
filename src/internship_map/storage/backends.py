"""
Key-value backends for the profile store.

JsonFileBackend keeps one file per key with atomic writes and an automatic
backup; InMemoryBackend is a dictionary with an optional byte quota, used by
tests and by read-only sessions.
"""

import re
import shutil
from pathlib import Path

from loguru import logger

from ..core.exceptions import StorageError, StorageQuotaExceededError


class JsonFileBackend:
    """
    File-per-key storage.

    Layout:
        {base_path}/
        ├── internship_map_profiles.json
        ├── internship_map_profiles.json.bak
        └── internship_map_migration_state.json
    """

    def __init__(self, base_path: str | Path, create_backup: bool = True):
        """
        Args:
            base_path: Directory holding one file per key
            create_backup: Keep the previous value as <key>.json.bak on write
        """
        self._base_path = Path(base_path)
        self._create_backup = create_backup
        self._base_path.mkdir(parents=True, exist_ok=True)

    def _sanitize_key(self, key: str) -> str:
        safe_key = re.sub(r'[<>:"/\\|?*\s]', "_", key)
        return safe_key[:200]

    def _path_for(self, key: str) -> Path:
        return self._base_path / f"{self._sanitize_key(key)}.json"

    def get(self, key: str) -> str | None:
        file_path = self._path_for(key)
        if not file_path.exists():
            return None
        try:
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {file_path}: {e}", key=key) from e

    def set(self, key: str, value: str) -> None:
        """
        Atomic write.

        1. Write to a temporary file
        2. Copy the current file to the backup (optional)
        3. Move the temporary file over the real one
        """
        file_path = self._path_for(key)
        temp_path = file_path.with_suffix(".json.tmp")
        backup_path = file_path.with_suffix(".json.bak")

        try:
            temp_path.write_text(value, encoding="utf-8")
            if self._create_backup and file_path.exists():
                shutil.copy2(file_path, backup_path)
            temp_path.replace(file_path)
            logger.debug(f"Stored key {key} ({len(value)} chars)")
        except OSError as e:
            if backup_path.exists() and not file_path.exists():
                try:
                    shutil.copy2(backup_path, file_path)
                    logger.info(f"Restored {file_path} from backup")
                except OSError as restore_error:
                    logger.error(f"Failed to restore from backup: {restore_error}")
            raise StorageError(f"Failed to write {file_path}: {e}", key=key) from e
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def delete(self, key: str) -> None:
        file_path = self._path_for(key)
        try:
            file_path.unlink(missing_ok=True)
            file_path.with_suffix(".json.bak").unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {file_path}: {e}", key=key) from e


class InMemoryBackend:
    """Dictionary-backed storage with an optional total size limit."""

    def __init__(self, quota_bytes: int | None = None):
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            used = sum(
                len(v.encode("utf-8")) for k, v in self._data.items() if k != key
            )
            if used + len(value.encode("utf-8")) > self._quota_bytes:
                raise StorageQuotaExceededError(
                    f"Quota of {self._quota_bytes} bytes exceeded", key=key
                )
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
