"""
JSON file storage for platform configs and scenarios.

Layout under the data root:

    platforms/sam_<id>.json
    platforms/fighter_<id>.json
    scenarios/<id>.json
    precipitation/<image>.npy      (rain rasters, referenced by scenarios)

Records are camelCase JSON. Loading validates through the pydantic
models: a missing file is None, a malformed one is an error.
"""

from __future__ import annotations
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from .errors import PlatformNotFound, ScenarioNotFound
from .platforms import FighterPlatformConfig, SAMSystemConfig
from .scenario import ScenarioConfig
from .schema import SpearModel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SpearModel)

PLATFORM_KINDS = ("sam", "fighter")

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def _is_safe_id(record_id: str) -> bool:
    return bool(_SAFE_ID.match(record_id)) and ".." not in record_id


def _read_model(filepath: Path, model: Type[M]) -> Optional[M]:
    if not filepath.exists():
        return None

    try:
        with open(filepath, "r") as f:
            data = json.load(f)
        return model.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Invalid record {filepath}: {e}")
        raise


def _write_model(filepath: Path, record: SpearModel) -> str:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w") as f:
        json.dump(record.to_dict(), f, indent=2)
    return str(filepath)


class PlatformStore:
    """
    SAM and fighter configs.

    Usage:
        store = PlatformStore("backend/data")
        sam = store.load_sam("sa-10")
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.platform_dir = self.root / "platforms"
        self.platform_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, kind: str, platform_id: str) -> Optional[Path]:
        if kind not in PLATFORM_KINDS:
            raise ValueError(f"Unknown platform kind: {kind}")
        if not _is_safe_id(platform_id):
            logger.warning(f"Rejected platform id {platform_id!r}")
            return None
        return self.platform_dir / f"{kind}_{platform_id}.json"

    def load_sam(self, sam_id: str) -> Optional[SAMSystemConfig]:
        path = self._path("sam", sam_id)
        return _read_model(path, SAMSystemConfig) if path else None

    def load_fighter(self, fighter_id: str) -> Optional[FighterPlatformConfig]:
        path = self._path("fighter", fighter_id)
        return _read_model(path, FighterPlatformConfig) if path else None

    def load(self, kind: str, platform_id: str) -> Optional[Union[SAMSystemConfig, FighterPlatformConfig]]:
        if kind == "sam":
            return self.load_sam(platform_id)
        if kind == "fighter":
            return self.load_fighter(platform_id)
        raise ValueError(f"Unknown platform kind: {kind}")

    def require_sam(self, sam_id: str) -> SAMSystemConfig:
        sam = self.load_sam(sam_id)
        if sam is None:
            raise PlatformNotFound("SAM", sam_id)
        return sam

    def require_fighter(self, fighter_id: str) -> FighterPlatformConfig:
        fighter = self.load_fighter(fighter_id)
        if fighter is None:
            raise PlatformNotFound("Fighter", fighter_id)
        return fighter

    def save_sam(self, sam: SAMSystemConfig) -> str:
        path = self._path("sam", sam.id)
        if path is None:
            raise ValueError(f"Invalid SAM id: {sam.id!r}")
        return _write_model(path, sam)

    def save_fighter(self, fighter: FighterPlatformConfig) -> str:
        path = self._path("fighter", fighter.id)
        if path is None:
            raise ValueError(f"Invalid fighter id: {fighter.id!r}")
        return _write_model(path, fighter)

    def list_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """All readable platforms by kind. Unreadable files are skipped."""
        result: Dict[str, List[Dict[str, Any]]] = {"sams": [], "fighters": []}
        for kind, key, model in (
            ("sam", "sams", SAMSystemConfig),
            ("fighter", "fighters", FighterPlatformConfig),
        ):
            for filepath in sorted(self.platform_dir.glob(f"{kind}_*.json")):
                try:
                    record = _read_model(filepath, model)
                except (json.JSONDecodeError, ValidationError):
                    logger.warning(f"Skipping unreadable platform file {filepath.name}")
                    continue
                result[key].append(record.to_dict())
        return result

    def delete(self, kind: str, platform_id: str) -> bool:
        path = self._path(kind, platform_id)
        if path is not None and path.exists():
            path.unlink()
            return True
        return False


class ScenarioStore:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.scenario_dir = self.root / "scenarios"
        self.scenario_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, scenario_id: str) -> Optional[Path]:
        if not _is_safe_id(scenario_id):
            logger.warning(f"Rejected scenario id {scenario_id!r}")
            return None
        return self.scenario_dir / f"{scenario_id}.json"

    def load(self, scenario_id: str) -> Optional[ScenarioConfig]:
        path = self._path(scenario_id)
        return _read_model(path, ScenarioConfig) if path else None

    def require(self, scenario_id: str) -> ScenarioConfig:
        scenario = self.load(scenario_id)
        if scenario is None:
            raise ScenarioNotFound(scenario_id)
        return scenario

    def save(self, scenario: ScenarioConfig) -> str:
        path = self._path(scenario.id)
        if path is None:
            raise ValueError(f"Invalid scenario id: {scenario.id!r}")
        return _write_model(path, scenario)

    def list_all(self) -> List[Dict[str, Any]]:
        """Scenario summaries (id, name, description), sorted by id."""
        scenarios = []
        for filepath in sorted(self.scenario_dir.glob("*.json")):
            try:
                scenario = _read_model(filepath, ScenarioConfig)
            except (json.JSONDecodeError, ValidationError):
                logger.warning(f"Skipping unreadable scenario file {filepath.name}")
                continue
            scenarios.append({
                "id": scenario.id,
                "name": scenario.name,
                "description": scenario.description,
            })
        return sorted(scenarios, key=lambda s: s["id"])

    def delete(self, scenario_id: str) -> bool:
        path = self._path(scenario_id)
        if path is not None and path.exists():
            path.unlink()
            return True
        return False
