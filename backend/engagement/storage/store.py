"""
Model Store Module
==================
Persistence for model versions.

The lifecycle manager only talks to the small ModelStore interface:
- save(version)                       store a new version
- deactivate_others(name, version_id) clear the active flag on every other version
- get_active(name)                    current active version, if any
- list_versions(name)                 all versions, oldest first

Implementations:
- InMemoryModelStore: process-local, for tests and development
- JsonModelStore: a JSON registry file, one list of versions per model name
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..models import ModelVersion
from ..config import AppConfig, get_config
from ..errors import ModelStoreError

logger = logging.getLogger(__name__)


class ModelStore(ABC):
    """Abstract persistence interface for model versions."""

    @abstractmethod
    def save(self, version: ModelVersion) -> None:
        """Persist a new model version."""
        pass

    @abstractmethod
    def deactivate_others(self, model_name: str, version_id: str) -> int:
        """
        Mark every version of `model_name` except `version_id` inactive.

        Idempotent. Returns the number of versions that changed.
        """
        pass

    @abstractmethod
    def list_versions(self, model_name: str) -> List[ModelVersion]:
        """All versions of a model, oldest first."""
        pass

    def get_active(self, model_name: str) -> Optional[ModelVersion]:
        """
        The active version of a model.

        If an interrupted swap left several versions active, the newest wins.
        """
        active = [v for v in self.list_versions(model_name) if v.active]
        return active[-1] if active else None

    def active_count(self, model_name: str) -> int:
        return sum(1 for v in self.list_versions(model_name) if v.active)


class InMemoryModelStore(ModelStore):
    """Model store kept in a dict. Versions are copied in and out."""

    def __init__(self):
        self._versions: Dict[str, List[dict]] = {}
        self._lock = threading.Lock()

    def save(self, version: ModelVersion) -> None:
        with self._lock:
            self._versions.setdefault(version.model_name, []).append(version.to_dict())

    def deactivate_others(self, model_name: str, version_id: str) -> int:
        changed = 0
        with self._lock:
            for record in self._versions.get(model_name, []):
                if record['version'] != version_id and record['active']:
                    record['active'] = False
                    changed += 1
        return changed

    def list_versions(self, model_name: str) -> List[ModelVersion]:
        with self._lock:
            records = list(self._versions.get(model_name, []))
        return [ModelVersion.from_dict(dict(r)) for r in records]


class JsonModelStore(ModelStore):
    """
    Model store backed by a JSON registry file.

    File layout:
        {
            "engagement_predictor": [
                {"version": "v1700000000000", "weights": {...},
                 "performance": {...}, "active": false, "created_at": "..."},
                ...
            ]
        }

    Writes go to a temporary file that replaces the registry, so a crash
    never leaves a half-written registry behind.
    """

    def __init__(self, registry_path: Union[str, Path]):
        self.registry_path = Path(registry_path)
        self._lock = threading.Lock()

    def _load_registry(self) -> Dict[str, List[dict]]:
        if not self.registry_path.exists():
            return {}
        try:
            with open(self.registry_path, 'r', encoding='utf-8') as f:
                registry = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ModelStoreError(f"Cannot read model registry {self.registry_path}: {e}") from e

        if not isinstance(registry, dict) or not all(
            isinstance(records, list) and all(isinstance(r, dict) for r in records)
            for records in registry.values()
        ):
            raise ModelStoreError(
                f"Malformed model registry {self.registry_path}: "
                "expected an object mapping model names to lists of versions"
            )
        return registry

    def _save_registry(self, registry: Dict[str, List[dict]]) -> None:
        tmp_path = None
        try:
            self.registry_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.registry_path.parent), suffix='.tmp'
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(registry, f, indent=2)
            os.replace(tmp_path, self.registry_path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ModelStoreError(f"Cannot write model registry {self.registry_path}: {e}") from e

    def save(self, version: ModelVersion) -> None:
        with self._lock:
            registry = self._load_registry()
            registry.setdefault(version.model_name, []).append(version.to_dict())
            self._save_registry(registry)
        logger.info(f"Saved {version.model_name} {version.version} to {self.registry_path}")

    def deactivate_others(self, model_name: str, version_id: str) -> int:
        with self._lock:
            registry = self._load_registry()
            changed = 0
            for record in registry.get(model_name, []):
                if record.get('version') != version_id and record.get('active'):
                    record['active'] = False
                    changed += 1
            if changed:
                self._save_registry(registry)
        return changed

    def list_versions(self, model_name: str) -> List[ModelVersion]:
        with self._lock:
            registry = self._load_registry()
        try:
            return [ModelVersion.from_dict(r) for r in registry.get(model_name, [])]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ModelStoreError(
                f"Malformed {model_name} entry in model registry {self.registry_path}: {e}"
            ) from e


def create_model_store(config: Optional[AppConfig] = None) -> ModelStore:
    """Build the model store selected by config.store.backend."""
    config = config or get_config()
    backend = config.store.backend

    if backend == "memory":
        return InMemoryModelStore()
    if backend == "json":
        return JsonModelStore(config.registry_path)

    raise ValueError(f"Unknown model store backend: {backend}")
