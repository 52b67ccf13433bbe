"""
Application settings: tool defaults and engine constants.

Settings are stored as JSON in the per-user config directory. Missing keys
fall back to the defaults below, unknown keys are ignored.
"""
import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from inkmark.utils.resource_loader import get_config_dir

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"


@dataclass
class ToolSettings:
    """Defaults seeded into newly created elements."""
    stroke_color: str = "#ff0000"
    stroke_width: float = 2.0
    font_size: float = 16.0
    font_family: str = "Arial"


@dataclass
class EngineSettings:
    """Constants shared by hit-testing, the live renderer and the exporter."""
    double_click_ms: int = 300
    line_height_factor: float = 1.2
    hit_padding: float = 2.0
    hit_descent: float = 4.0
    default_font_size: float = 16.0
    arrow_head_length: float = 15.0
    highlight_default_height: float = 20.0
    highlight_opacity: float = 0.3
    zoom_min: float = 0.25
    zoom_max: float = 3.0
    zoom_step: float = 0.25
    default_scale: float = 1.0


def _merge(cls, data: Any):
    known = {f.name for f in fields(cls)}
    if not isinstance(data, dict):
        return cls()
    return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class AppSettings:
    tools: ToolSettings = field(default_factory=ToolSettings)
    engine: EngineSettings = field(default_factory=EngineSettings)

    def to_dict(self) -> Dict[str, Any]:
        return {'tools': asdict(self.tools), 'engine': asdict(self.engine)}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'AppSettings':
        return AppSettings(
            tools=_merge(ToolSettings, data.get('tools')),
            engine=_merge(EngineSettings, data.get('engine')),
        )

    @staticmethod
    def default_path() -> Path:
        return get_config_dir() / SETTINGS_FILE_NAME

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'AppSettings':
        """
        Load settings from disk.

        Args:
            path: Optional custom settings file; defaults to the config dir

        Returns:
            The loaded settings, or defaults if the file is missing or broken
        """
        path = Path(path) if path is not None else cls.default_path()
        if not path.exists():
            return cls()

        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", path, e)
            return cls()

        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected an object", path)
            return cls()
        return cls.from_dict(data)

    def save(self, path: Optional[Path] = None) -> Path:
        """Write settings as JSON and return the path written."""
        path = Path(path) if path is not None else self.default_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        return path
