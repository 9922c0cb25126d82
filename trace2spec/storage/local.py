"""
Local filesystem storage backend.

Keys are file paths: relative keys resolve under the backend's base path,
absolute keys are used as given.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TypeVar

import aiofiles
import pydantic
from pydantic import BaseModel

from ..core.exceptions import InputLoadError, ValidationError
from .interface import StorageBackend

T = TypeVar("T", bound=BaseModel)


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, base_path: Path | None = None) -> None:
        """Initialize local storage.

        Args:
            base_path: Directory relative keys resolve against (cwd if omitted)
        """
        self.base_path = (base_path or Path.cwd()).resolve()

    def _get_full_path(self, key: str | Path) -> Path:
        path = Path(key).expanduser()
        if path.is_absolute():
            return path
        return self.base_path / path

    async def store_text(self, key: str, content: str) -> str:
        """Write text to a file, creating parent directories.

        Args:
            key: The storage key under which to store the content.
            content: The text content to store.

        Returns:
            The storage key where the content was stored.
        """
        full_path = self._get_full_path(key)
        full_path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(full_path, "w", encoding="utf-8") as f:
            await f.write(content)

        return str(key)

    async def store_model(self, key: str, model: BaseModel) -> str:
        """Store a Pydantic model as pretty JSON using wire aliases.

        ``None`` values are omitted so optional fields stay absent.
        """
        json_content = model.model_dump_json(indent=2, by_alias=True, exclude_none=True)
        return await self.store_text(key, json_content + "\n")

    async def load_text(self, key: str) -> str:
        """Load text content from a file.

        Raises:
            InputLoadError: If the file does not exist or cannot be read.
        """
        full_path = self._get_full_path(key)

        if not full_path.is_file():
            raise InputLoadError(
                message=f"File not found: {key}",
                service_name="storage",
                operation="load",
                path=str(key),
            )

        try:
            async with aiofiles.open(full_path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise InputLoadError(
                message=str(e),
                service_name="storage",
                operation="load",
                path=str(key),
                cause=e,
            ) from e

    async def load_json(self, key: str) -> Any:
        """Load and decode a JSON file.

        Raises:
            InputLoadError: If the file is missing or is not valid JSON.
        """
        content = await self.load_text(key)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise InputLoadError(
                message=f"Invalid JSON: {e}",
                service_name="storage",
                operation="load",
                path=str(key),
                cause=e,
            ) from e

    async def load_model(self, key: str, model_type: type[T]) -> T:
        """Load a JSON file into ``model_type``.

        Raises:
            InputLoadError: If the file is missing or is not valid JSON.
            ValidationError: If the document does not match the model.
        """
        data = await self.load_json(key)
        try:
            return model_type.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(
                message=f"{key} has {e.error_count()} invalid value(s)",
                model_name=model_type.__name__,
                errors=[
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in e.errors()[:5]
                ],
                context={"path": str(key)},
                cause=e,
            ) from e

    async def exists(self, key: str) -> bool:
        return self._get_full_path(key).exists()

    def get_local_path(self, key: str) -> Path | None:
        """Get local filesystem path for a key.

        Returns:
            The filesystem path if the key exists, None otherwise.
        """
        full_path = self._get_full_path(key)
        if full_path.exists():
            return full_path
        return None
