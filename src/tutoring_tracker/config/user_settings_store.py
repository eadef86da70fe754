from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

_LOGGER = logging.getLogger(__name__)

DEFAULT_APP_NAME = os.getenv("APP_NAME", "Tutoring Progress Tracker")
DEFAULT_POINTER_DIR = Path(os.path.expanduser("~")) / "Documents" / DEFAULT_APP_NAME
DEFAULT_SETTINGS_FILENAME = "user_settings.json"

STORAGE_BACKENDS = ("sqlite", "rest")

DEFAULT_SETTINGS: Dict[str, Any] = {
	"fetch_limit": 100,
	"export_delimiter": ",",
	"storage_backend": "sqlite",
	"app_data_dir": str(DEFAULT_POINTER_DIR),
}


def normalize_setting(key: str, value: Any) -> Any:
	"""Return the stored form of ``value`` for ``key``; raise ``ValueError`` if unusable."""

	if key == "fetch_limit":
		try:
			limit = int(value)
		except (TypeError, ValueError):
			raise ValueError(f"Fetch limit must be a whole number, got {value!r}") from None
		if limit < 1:
			raise ValueError(f"Fetch limit must be at least 1, got {limit}")
		return limit
	if key == "export_delimiter":
		if not isinstance(value, str) or len(value) != 1 or value in '"\r\n':
			raise ValueError(f"Export delimiter must be a single character, got {value!r}")
		return value
	if key == "storage_backend":
		backend = str(value or "").strip().lower()
		if backend not in STORAGE_BACKENDS:
			raise ValueError(f"Storage backend must be one of {', '.join(STORAGE_BACKENDS)}, got {value!r}")
		return backend
	if key == "app_data_dir":
		if not value:
			raise ValueError("Data directory cannot be empty")
		return str(Path(value).expanduser())
	raise KeyError(key)


@dataclass
class UserSettingsStore:
	"""Tracker preferences kept as JSON in the data directory.

	A pointer file under ``pointer_dir`` records where the data directory is, so
	moving the data directory survives a restart.
	"""

	pointer_dir: Path = field(default_factory=lambda: DEFAULT_POINTER_DIR)
	settings_filename: str = DEFAULT_SETTINGS_FILENAME
	_data: Dict[str, Any] = field(init=False, default_factory=dict)
	app_data_dir: Path = field(init=False)
	settings_file: Path = field(init=False)

	def __post_init__(self) -> None:
		self.pointer_dir.mkdir(parents=True, exist_ok=True)
		self.reload()

	@property
	def pointer_file(self) -> Path:
		return self.pointer_dir / self.settings_filename

	@property
	def data(self) -> Dict[str, Any]:
		return dict(self._data)

	def get(self, key: str, default: Any = None) -> Any:
		return self._data.get(key, default)

	def reload(self) -> None:
		pointer_data = self._load_json(self.pointer_file)
		self._use_data_dir(pointer_data.get("app_data_dir") or str(self.pointer_dir))

		stored = dict(pointer_data)
		stored.update(self._load_json(self.settings_file))

		data = dict(DEFAULT_SETTINGS)
		for key in ("fetch_limit", "export_delimiter", "storage_backend"):
			if key not in stored:
				continue
			try:
				data[key] = normalize_setting(key, stored[key])
			except ValueError as exc:
				_LOGGER.warning("Ignoring stored %s: %s", key, exc)
		data["app_data_dir"] = str(self.app_data_dir)
		self._data = data

	def update(self, **kwargs: Any) -> Dict[str, Any]:
		"""Validate and persist the given preferences.

		Unknown keys are ignored. Nothing is written if any value is invalid.
		"""

		changes = {
			key: normalize_setting(key, value)
			for key, value in kwargs.items()
			if key in DEFAULT_SETTINGS and value is not None
		}

		new_dir = changes.pop("app_data_dir", None)
		if new_dir is not None and Path(new_dir) != self.app_data_dir:
			self._use_data_dir(new_dir)

		self._data = {**self._data, **changes, "app_data_dir": str(self.app_data_dir)}
		self._persist()
		return dict(self._data)

	def _use_data_dir(self, raw_dir: str) -> None:
		self.app_data_dir = Path(raw_dir).expanduser()
		self.app_data_dir.mkdir(parents=True, exist_ok=True)
		self.settings_file = self.app_data_dir / self.settings_filename

	def _persist(self) -> None:
		if self.settings_file != self.pointer_file:
			self._write_json(self.pointer_file, {"app_data_dir": self._data["app_data_dir"]})
		self._write_json(self.settings_file, self._data)

	@staticmethod
	def _write_json(path: Path, payload: Dict[str, Any]) -> None:
		with path.open("w", encoding="utf-8") as handle:
			json.dump(payload, handle, indent=2)

	@staticmethod
	def _load_json(path: Path) -> Dict[str, Any]:
		try:
			if path.exists():
				with path.open("r", encoding="utf-8") as handle:
					loaded = json.load(handle)
					return loaded if isinstance(loaded, dict) else {}
		except (OSError, ValueError) as exc:
			_LOGGER.warning("Could not read settings file %s: %s", path, exc)
		return {}
