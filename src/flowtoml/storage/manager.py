"""
Document Store - persists registry documents as TOML files.

Files live under a per-user configuration directory:
- <base>/<directory>/<name>.toml        canonical document
- <base>/<directory>/<name>.toml.old    backup of the previous save

Saving with backups enabled renames the canonical file to the backup before
writing, so a crash in between leaves only the backup. open_document() and
list_documents() both restore the canonical file from such a backup.
"""

import logging
import shutil
import tomllib
from pathlib import Path

import tomli_w

from flowtoml.config import Settings
from flowtoml.core.exceptions import BasePathError
from flowtoml.core.models import (
    DeleteDocumentError,
    ListDocumentsError,
    OpenDocumentError,
    OperationResult,
    PathError,
    SaveDocumentError,
)
from flowtoml.registry.documents import Document, DocumentRegistry
from flowtoml.storage.paths import BaseDirectoryResolver, resolver_from_settings

logger = logging.getLogger(__name__)


class DocumentStore:
    """
    Save/open/list protocol on top of a DocumentRegistry.

    Saving is terminal for a handle: once the handle is found, it is closed
    whether the save succeeds or not.
    """

    EXTENSION = ".toml"
    DEFAULT_BACKUP_SUFFIX = ".old"

    def __init__(
        self,
        registry: DocumentRegistry,
        resolver: BaseDirectoryResolver,
        backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
    ):
        """
        Initialize the store.

        Args:
            registry: Registry holding the open documents
            resolver: Strategy for the per-user configuration root
            backup_suffix: Appended to the canonical file name for backups
        """
        self._registry = registry
        self._resolver = resolver
        self._backup_suffix = backup_suffix

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: DocumentRegistry | None = None
    ) -> "DocumentStore":
        """Build a store (and a fresh registry unless given) from settings."""
        return cls(
            registry or DocumentRegistry(),
            resolver_from_settings(settings),
            backup_suffix=settings.backup_suffix,
        )

    @property
    def registry(self) -> DocumentRegistry:
        return self._registry

    @property
    def backup_suffix(self) -> str:
        return self._backup_suffix

    def resolve_config_base_directory(self) -> OperationResult[Path, PathError]:
        """Return the per-user configuration root, creating it if absent."""
        try:
            return OperationResult.success(self._resolver.resolve())
        except BasePathError as e:
            logger.error(f"Failed to get directory for configs: {e}")
            return OperationResult.failure(PathError.FAILED_TO_GET_BASE_PATH)

    def resolve_documents_directory(
        self, directory_name: str
    ) -> OperationResult[Path, PathError]:
        """Return <base>/<directory_name>; the directory may not exist yet."""
        if not directory_name:
            return OperationResult.failure(PathError.DIRECTORY_NAME_EMPTY)

        base = self.resolve_config_base_directory()
        if not base.ok:
            return OperationResult.failure(base.error)
        return OperationResult.success(base.value / directory_name)

    def document_paths(self, directory: Path, file_name: str) -> tuple[Path, Path]:
        """Return the canonical and backup paths for a document name."""
        canonical = directory / f"{file_name}{self.EXTENSION}"
        backup = directory / f"{file_name}{self.EXTENSION}{self._backup_suffix}"
        return canonical, backup

    def close_document(self, handle: int) -> bool:
        """Discard an open document without saving it."""
        return self._registry.close(handle)

    def save_document(
        self,
        handle: int,
        file_name: str,
        directory_name: str,
        enable_backup: bool = True,
        overwrite: bool = True,
    ) -> OperationResult[Path, SaveDocumentError]:
        """
        Write a document to <directory_name>/<file_name>.toml and close it.

        Args:
            handle: Open document to save
            file_name: File name without the .toml extension
            directory_name: Directory under the configuration root
            enable_backup: Keep the previous file as a backup
            overwrite: Only used without backups; when False an existing
                file is left untouched and the save still succeeds

        Returns:
            Result holding the canonical file path
        """
        with self._registry.access(handle) as data:
            if not file_name:
                self._registry.close(handle)
                return OperationResult.failure(SaveDocumentError.FILE_NAME_EMPTY)

            if not directory_name:
                self._registry.close(handle)
                return OperationResult.failure(SaveDocumentError.DIRECTORY_NAME_EMPTY)

            if data is None:
                logger.warning(f"Cannot save document {handle}: not registered")
                return OperationResult.failure(SaveDocumentError.DOCUMENT_NOT_FOUND)

            try:
                if not data:
                    return OperationResult.failure(SaveDocumentError.DOCUMENT_IS_EMPTY)
                return self._write_document(
                    handle, data, file_name, directory_name, enable_backup, overwrite
                )
            finally:
                self._registry.close(handle)

    def _write_document(
        self,
        handle: int,
        data: Document,
        file_name: str,
        directory_name: str,
        enable_backup: bool,
        overwrite: bool,
    ) -> OperationResult[Path, SaveDocumentError]:
        resolved = self.resolve_documents_directory(directory_name)
        if not resolved.ok:
            return OperationResult.failure(SaveDocumentError.FAILED_TO_GET_BASE_PATH)
        directory = resolved.value

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory {directory}: {e}")
            return OperationResult.failure(SaveDocumentError.UNABLE_TO_CREATE_FILE)

        # Serialize first so an unrepresentable value never costs the old file.
        try:
            content = tomli_w.dumps(data)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize document {handle}: {e}")
            return OperationResult.failure(SaveDocumentError.UNABLE_TO_CREATE_FILE)

        canonical, backup = self.document_paths(directory, file_name)

        if not enable_backup and not overwrite and canonical.exists():
            logger.info(f"Kept existing file {canonical} (document {handle})")
            return OperationResult.success(canonical)

        try:
            if enable_backup and canonical.exists():
                backup.unlink(missing_ok=True)
                canonical.rename(backup)

            canonical.write_bytes(content.encode("utf-8"))
        except OSError as e:
            logger.error(f"Unable to write {canonical} (document {handle}): {e}")
            return OperationResult.failure(SaveDocumentError.UNABLE_TO_CREATE_FILE)

        if enable_backup and not backup.exists():
            try:
                shutil.copyfile(canonical, backup)
            except OSError as e:
                logger.warning(f"Saved {canonical} but could not create backup: {e}")

        logger.info(f"Saved TOML document at {canonical} (document {handle})")
        return OperationResult.success(canonical)

    def open_document(
        self, file_name: str, directory_name: str
    ) -> OperationResult[int, OpenDocumentError]:
        """
        Parse <directory_name>/<file_name>.toml into a new open document.

        A missing canonical file is restored from its backup first. On a
        parse failure the new handle is discarded.
        """
        if not file_name:
            return OperationResult.failure(OpenDocumentError.FILE_NAME_EMPTY)
        if not directory_name:
            return OperationResult.failure(OpenDocumentError.DIRECTORY_NAME_EMPTY)

        resolved = self.resolve_documents_directory(directory_name)
        if not resolved.ok:
            return OperationResult.failure(OpenDocumentError.FAILED_TO_GET_BASE_PATH)
        directory = resolved.value

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Failed to create directory {directory}: {e}")

        canonical, backup = self.document_paths(directory, file_name)

        if not canonical.exists() and backup.exists():
            if not self._restore_from_backup(backup, canonical):
                return OperationResult.failure(OpenDocumentError.FILE_NOT_FOUND)

        if not canonical.exists():
            return OperationResult.failure(OpenDocumentError.FILE_NOT_FOUND)

        handle = self._registry.new_document()
        with self._registry.access(handle) as data:
            try:
                with open(canonical, "rb") as f:
                    parsed = tomllib.load(f)
            except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
                logger.error(f"Failed to parse file at {canonical}, error: {e}")
                self._registry.close(handle)
                return OperationResult.failure(OpenDocumentError.PARSING_FAILED)
            except OSError as e:
                logger.error(f"Failed to read file at {canonical}, error: {e}")
                self._registry.close(handle)
                return OperationResult.failure(OpenDocumentError.FILE_NOT_FOUND)

            data.update(parsed)

        logger.info(f"Opened TOML document at {canonical} (document {handle})")
        return OperationResult.success(handle)

    def list_documents(
        self, directory_name: str
    ) -> OperationResult[list[str], ListDocumentsError]:
        """
        Return the sorted, unique document names in a directory.

        The scan is not recursive. A backup without its canonical file is
        restored and reported under the canonical name.
        """
        resolved = self.resolve_documents_directory(directory_name)
        if not resolved.ok:
            if resolved.error is PathError.DIRECTORY_NAME_EMPTY:
                return OperationResult.failure(ListDocumentsError.DIRECTORY_NAME_EMPTY)
            return OperationResult.failure(ListDocumentsError.FAILED_TO_GET_BASE_PATH)
        directory = resolved.value

        if not directory.is_dir():
            return OperationResult.success([])

        backup_ending = f"{self.EXTENSION}{self._backup_suffix}"
        names: set[str] = set()

        for entry in directory.iterdir():
            if not entry.is_file():
                continue

            if entry.name.endswith(backup_ending):
                name = entry.name[: -len(backup_ending)]
                canonical, _ = self.document_paths(directory, name)
                if name and not canonical.exists():
                    self._restore_from_backup(entry, canonical)
            elif entry.name.endswith(self.EXTENSION):
                name = entry.name[: -len(self.EXTENSION)]
            else:
                continue

            if name:
                names.add(name)

        return OperationResult.success(sorted(names))

    def delete_document(
        self, file_name: str, directory_name: str
    ) -> OperationResult[None, DeleteDocumentError]:
        """Remove a document's canonical and backup files."""
        if not file_name:
            return OperationResult.failure(DeleteDocumentError.FILE_NAME_EMPTY)

        resolved = self.resolve_documents_directory(directory_name)
        if not resolved.ok:
            if resolved.error is PathError.DIRECTORY_NAME_EMPTY:
                return OperationResult.failure(DeleteDocumentError.DIRECTORY_NAME_EMPTY)
            return OperationResult.failure(DeleteDocumentError.FAILED_TO_GET_BASE_PATH)

        paths = [p for p in self.document_paths(resolved.value, file_name) if p.exists()]
        if not paths:
            return OperationResult.failure(DeleteDocumentError.FILE_NOT_FOUND)

        try:
            for path in paths:
                path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete {file_name} in {resolved.value}: {e}")
            return OperationResult.failure(DeleteDocumentError.UNABLE_TO_DELETE_FILE)

        logger.info(f"Deleted TOML document {file_name} in {resolved.value}")
        return OperationResult.success()

    def _restore_from_backup(self, backup: Path, canonical: Path) -> bool:
        try:
            shutil.copyfile(backup, canonical)
        except OSError as e:
            logger.error(f"Failed to restore {canonical} from backup: {e}")
            return False
        logger.info(f"Restored {canonical} from backup {backup.name}")
        return True
