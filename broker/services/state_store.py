"""
Flat-file state for service instances and bindings.

Each category lives in its own JSON file holding the full id -> record
mapping. Files are rewritten wholesale on every mutation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Type, Union

from pydantic import BaseModel, ValidationError

from broker.errors import PersistenceFailure
from broker.models import ServiceBinding, ServiceInstance, StateCategory

logger = logging.getLogger(__name__)

Record = Union[ServiceInstance, ServiceBinding]

_RECORD_TYPES: Dict[StateCategory, Type[BaseModel]] = {
    StateCategory.INSTANCES: ServiceInstance,
    StateCategory.BINDINGS: ServiceBinding,
}


class StateStore:
    """
    Owns the in-memory instance and binding maps and their state files.

    `persist` only replaces the in-memory view after the file write
    succeeded, so memory always mirrors the last good write.
    """

    def __init__(self, state_dir: str):
        self.state_dir = Path(state_dir)
        self.instances: Dict[str, ServiceInstance] = {}
        self.bindings: Dict[str, ServiceBinding] = {}
        self.reload()

    def path_for(self, category: StateCategory) -> Path:
        return self.state_dir / f"{category.value}.json"

    def reload(self) -> None:
        self.instances = self.load(StateCategory.INSTANCES)
        self.bindings = self.load(StateCategory.BINDINGS)
        logger.info(
            f"State restored from {self.state_dir}: "
            f"{len(self.instances)} instances, {len(self.bindings)} bindings"
        )

    def mapping(self, category: StateCategory) -> Dict[str, Record]:
        if category == StateCategory.INSTANCES:
            return self.instances
        return self.bindings

    def load(self, category: StateCategory) -> Dict[str, Record]:
        path = self.path_for(category)
        if not path.exists():
            logger.warning(f"State file '{path}' does not exist, starting empty")
            return {}

        record_type = _RECORD_TYPES[category]
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
            return {key: record_type.model_validate(value) for key, value in raw.items()}
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load state file '{path}', starting empty: {e}")
            return {}

    def persist(self, category: StateCategory, mapping: Dict[str, Record]) -> None:
        path = self.path_for(category)
        try:
            payload = json.dumps(
                {key: record.model_dump(mode="json") for key, record in mapping.items()},
                indent=2,
                sort_keys=True,
            )
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{category.value}.", dir=str(self.state_dir))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write state file '{path}': {e}")
            raise PersistenceFailure(f"failed to persist {category.value}: {e}") from e

        if category == StateCategory.INSTANCES:
            self.instances = dict(mapping)
        else:
            self.bindings = dict(mapping)
        logger.info(f"State file saved: {path} ({len(mapping)} records)")
