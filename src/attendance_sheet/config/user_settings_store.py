from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = os.getenv("APP_NAME", "Institute Attendance Sheet")
DEFAULT_CONFIG_DIR = Path(os.path.expanduser("~")) / "Documents" / DEFAULT_APP_NAME
DEFAULT_SETTINGS_FILENAME = "user_settings.json"
MIN_AUTOSAVE_DELAY_MS = 200

DEFAULT_SETTINGS: Dict[str, Any] = {
	"teacher_id": None,
	"autosave_delay_ms": 1000,
	"last_month": None,
	"app_data_dir": str(DEFAULT_CONFIG_DIR),
}


def _clean_delay(value: Any) -> int:
	try:
		delay = int(value)
	except (TypeError, ValueError):
		logger.warning("Ignoring invalid auto-save delay %r", value)
		return DEFAULT_SETTINGS["autosave_delay_ms"]
	return max(delay, MIN_AUTOSAVE_DELAY_MS)


@dataclass
class UserSettingsStore:
	"""Teacher preferences kept in one JSON file under ``config_dir``.

	``app_data_dir`` only names the folder for the database and log; the
	settings file itself never moves.
	"""

	config_dir: Path = field(default_factory=lambda: DEFAULT_CONFIG_DIR)
	settings_filename: str = DEFAULT_SETTINGS_FILENAME
	_data: Dict[str, Any] = field(init=False, default_factory=dict)

	def __post_init__(self) -> None:
		self.config_dir = Path(self.config_dir).expanduser()
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.reload()

	@property
	def settings_file(self) -> Path:
		return self.config_dir / self.settings_filename

	@property
	def app_data_dir(self) -> Path:
		return Path(self.get("app_data_dir", DEFAULT_SETTINGS["app_data_dir"])).expanduser()

	@property
	def data(self) -> Dict[str, Any]:
		return dict(self._data)

	def get(self, key: str, default: Any = None) -> Any:
		value = self._data.get(key)
		return default if value is None else value

	def reload(self) -> None:
		stored = self._load_json(self.settings_file)
		combined = dict(DEFAULT_SETTINGS)
		combined.update({key: value for key, value in stored.items() if key in DEFAULT_SETTINGS})
		combined["autosave_delay_ms"] = _clean_delay(combined["autosave_delay_ms"])
		self._data = combined

	def update(self, **changes: Any) -> Dict[str, Any]:
		"""Store known keys, drop the rest, and write the file."""

		unknown = sorted(set(changes) - set(DEFAULT_SETTINGS))
		if unknown:
			logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))

		new_data = dict(self._data)
		new_data.update({key: value for key, value in changes.items() if key in DEFAULT_SETTINGS})
		new_data["autosave_delay_ms"] = _clean_delay(new_data["autosave_delay_ms"])
		if new_data.get("app_data_dir"):
			new_data["app_data_dir"] = str(Path(new_data["app_data_dir"]).expanduser())

		self._data = new_data
		self._persist()
		return dict(self._data)

	def _persist(self) -> None:
		temp_path = self.settings_file.with_suffix(".tmp")
		with temp_path.open("w", encoding="utf-8") as handle:
			json.dump(self._data, handle, indent=2)
		temp_path.replace(self.settings_file)

	@staticmethod
	def _load_json(path: Path) -> Dict[str, Any]:
		if not path.exists():
			return {}
		try:
			with path.open("r", encoding="utf-8") as handle:
				loaded = json.load(handle)
		except (OSError, json.JSONDecodeError):
			logger.warning("Ignoring unreadable settings file %s", path, exc_info=True)
			return {}
		if not isinstance(loaded, dict):
			logger.warning("Ignoring settings file %s; expected a JSON object", path)
			return {}
		return loaded
