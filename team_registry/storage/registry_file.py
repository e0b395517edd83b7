# team_registry/storage/registry_file.py
import json
import os
import tempfile
from pathlib import Path
from typing import Union

from loguru import logger
from pydantic import ValidationError

from team_registry.models.registry import Registry, RegistryDocument

PathLike = Union[str, Path]


class RegistryFileError(Exception):
    """The registry file exists but cannot be read or parsed."""

    pass


def load_registry_document(path: PathLike) -> RegistryDocument:
    """Reads the registry file. A missing file yields an empty registry.

    Raises:
        RegistryFileError: if the file is unreadable, is not valid JSON, or
            its top level is not a JSON object.
    """
    registry_path = Path(path)
    if not registry_path.exists():
        logger.warning(f"{registry_path} not found, starting from an empty registry.")
        return RegistryDocument()

    try:
        raw = json.loads(registry_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise RegistryFileError(f"Cannot read {registry_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RegistryFileError(f"Invalid JSON in {registry_path}: {e}") from e

    if not isinstance(raw, dict):
        raise RegistryFileError(
            f"Expected a JSON object at the top of {registry_path}, got {type(raw).__name__}"
        )

    try:
        document = RegistryDocument.model_validate(raw)
    except ValidationError as e:
        raise RegistryFileError(f"Unusable registry structure in {registry_path}: {e}") from e

    logger.debug(
        f"Loaded {registry_path}: version {document.version}, "
        f"{len(document.teams)} teams, {len(document.regions)} regions"
    )
    return document


def dump_registry(registry: Registry) -> str:
    """Pretty-printed JSON with a trailing newline."""
    return json.dumps(registry.to_json(), indent=2, ensure_ascii=False) + "\n"


def write_registry(path: PathLike, registry: Registry) -> Path:
    """Rewrites the whole registry file (temp file + atomic replace)."""
    registry_path = Path(path)
    registry_path.parent.mkdir(parents=True, exist_ok=True)
    payload = dump_registry(registry)

    fd, tmp_name = tempfile.mkstemp(
        dir=registry_path.parent, prefix=f".{registry_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_name, registry_path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.debug(f"Wrote {len(registry.teams)} teams to {registry_path}")
    return registry_path
