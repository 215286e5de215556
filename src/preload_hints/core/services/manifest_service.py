# src/preload_hints/core/services/manifest_service.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from preload_hints.model import Compilation

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when a build manifest cannot be read or does not describe a build."""


class ManifestService:
    """
    Loads a build manifest (a stats JSON file) into a Compilation.

    Expected keys: `publicPath`, `assets` (names or {"name": ...} records)
    and `chunks` (records with `id`, `hash`, `name`/`names`, `initial`,
    `files`, `parents`).
    """

    def load(self, path: Union[str, Path], public_path: Optional[str] = None) -> Compilation:
        manifest_path = Path(path)
        try:
            raw = json.loads(manifest_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ManifestError(f"Cannot read manifest {manifest_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ManifestError(f"Manifest {manifest_path} is not valid JSON: {e}") from e

        compilation = self.from_dict(raw, source=str(manifest_path))
        if public_path is not None:
            compilation = compilation.model_copy(update={"public_path": public_path})
        return compilation

    @staticmethod
    def from_dict(raw: Any, source: str = "<manifest>") -> Compilation:
        if not isinstance(raw, dict):
            raise ManifestError(f"Manifest {source} must be a JSON object, got {type(raw).__name__}")
        try:
            compilation = Compilation.model_validate(raw)
        except ValidationError as e:
            raise ManifestError(f"Manifest {source} is invalid: {e}") from e

        logger.debug(
            "Loaded manifest %s: %d chunk(s), %d asset(s), publicPath=%r",
            source, len(compilation.chunks), len(compilation.assets), compilation.public_path,
        )
        return compilation

    @staticmethod
    def chunk_hash_by_file(compilation: Compilation) -> Dict[str, str]:
        """Maps every emitted file of every chunk to that chunk's identity hash."""
        owners: Dict[str, str] = {}
        for chunk in compilation.chunks:
            for entry in chunk.files:
                owners.setdefault(entry, chunk.rendered_hash)
        return owners
