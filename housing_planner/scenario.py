"""
scenario.py

Saving, loading and deleting named scenarios (parameter snapshots) plus the
autosaved form snapshot. Storage is injected: anything with get/set/delete by
string key works. InMemoryStore backs the tests, JsonFileStore backs the app.
"""

import json
import logging
import os
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

SCENARIOS_STORAGE_KEY = "retirementCalculatorScenarios"
FORM_SNAPSHOT_KEY = "retirementCalculatorData"


class ScenarioImportError(ValueError):
    """Raised when imported scenario JSON cannot be used."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Keeps every key in one JSON object on disk. The file is created on first write.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except ValueError as e:
            logger.error("Store file %s is unreadable: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Store file %s does not hold a JSON object", self.path)
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


@dataclass
class SavedScenario:
    id: str
    name: str
    notes: str
    parameters: dict
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['updated_at'] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SavedScenario":
        return cls(
            id=data['id'],
            name=data['name'],
            notes=data.get('notes', ""),
            parameters=data.get('parameters', {}),
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at'])
        )


def generate_scenario_id() -> str:
    return f"scenario_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class ScenarioManager:
    """
    Manages saved scenarios and the form snapshot on top of a key-value store.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _write_all(self, scenarios: List[SavedScenario]) -> None:
        self.store.set(SCENARIOS_STORAGE_KEY, json.dumps([s.to_dict() for s in scenarios]))

    def get_all_scenarios(self) -> List[SavedScenario]:
        """
        All saved scenarios. Unreadable stored data is logged and treated as empty
        so the rest of the application keeps working.
        """
        try:
            raw = self.store.get(SCENARIOS_STORAGE_KEY)
            if not raw:
                return []
            return [SavedScenario.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Failed to parse saved scenarios: %s", e)
            return []

    def save_scenario(self, name: str, notes: str, parameters: dict,
                      existing_id: Optional[str] = None) -> SavedScenario:
        """
        Saves a new scenario, or updates the one with existing_id if it exists.
        """
        if not name or not name.strip():
            raise ValueError("Scenario name is required")

        scenarios = self.get_all_scenarios()
        now = datetime.now()

        if existing_id:
            for scenario in scenarios:
                if scenario.id == existing_id:
                    scenario.name = name
                    scenario.notes = notes
                    scenario.parameters = parameters
                    scenario.updated_at = now
                    self._write_all(scenarios)
                    logger.debug("Updated scenario %s", existing_id)
                    return scenario

        scenario = SavedScenario(
            id=generate_scenario_id(),
            name=name,
            notes=notes,
            parameters=parameters,
            created_at=now,
            updated_at=now
        )
        scenarios.append(scenario)
        self._write_all(scenarios)
        logger.debug("Saved scenario %s (%s)", scenario.id, name)
        return scenario

    def get_scenario(self, scenario_id: str) -> Optional[SavedScenario]:
        for scenario in self.get_all_scenarios():
            if scenario.id == scenario_id:
                return scenario
        return None

    def delete_scenario(self, scenario_id: str) -> bool:
        """Returns False if no scenario has that id."""
        scenarios = self.get_all_scenarios()
        remaining = [s for s in scenarios if s.id != scenario_id]
        if len(remaining) == len(scenarios):
            return False
        self._write_all(remaining)
        return True

    def delete_all_scenarios(self) -> None:
        self.store.delete(SCENARIOS_STORAGE_KEY)

    def export_scenarios(self) -> str:
        return json.dumps([s.to_dict() for s in self.get_all_scenarios()], indent=2)

    def import_scenarios(self, json_string: str, merge: bool = True) -> int:
        """
        Adds scenarios from an export, skipping ids that already exist.
        With merge=False the imported list replaces what is stored.
        Returns the number of scenarios in the import.
        """
        try:
            imported = json.loads(json_string)
            if not isinstance(imported, list):
                raise ScenarioImportError("Invalid scenarios format")
            imported_scenarios = [SavedScenario.from_dict(item) for item in imported]
        except ScenarioImportError:
            raise
        except (ValueError, KeyError, TypeError) as e:
            raise ScenarioImportError(f"Failed to import scenarios: {e}") from e

        scenarios = self.get_all_scenarios() if merge else []
        existing_ids = {s.id for s in scenarios}
        for scenario in imported_scenarios:
            if scenario.id not in existing_ids:
                scenarios.append(scenario)
                existing_ids.add(scenario.id)

        self._write_all(scenarios)
        return len(imported_scenarios)

    # -----------------------------------------------
    # Autosaved form snapshot
    # -----------------------------------------------
    def save_form_snapshot(self, form_data: dict) -> None:
        self.store.set(FORM_SNAPSHOT_KEY, json.dumps(form_data))

    def load_form_snapshot(self) -> Optional[dict]:
        try:
            raw = self.store.get(FORM_SNAPSHOT_KEY)
            if not raw:
                return None
            return json.loads(raw)
        except ValueError as e:
            logger.error("Failed to parse saved form data: %s", e)
            return None

    def clear_form_snapshot(self) -> None:
        self.store.delete(FORM_SNAPSHOT_KEY)
