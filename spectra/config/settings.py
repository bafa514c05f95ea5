from __future__ import annotations
import json, os, dataclasses, logging
from dataclasses import dataclass
from typing import Literal, Dict, Any

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".config", "spectra")
PRESET_DIR = os.path.join(CONFIG_DIR, "presets")

ANALYZER_STATE_FILE = os.path.join(CONFIG_DIR, "analyzer.json")

WindowName = Literal["blackman", "hamming", "hanningNormalized", "hanningDenormalized", "none"]

@dataclass
class AnalyzerConfig:
    sample_count: int = 2048
    window: WindowName = "blackman"
    smoothing: float = 0.0  # 0 disables, otherwise [0, 1)
    precision: Literal["float32", "float64"] = "float32"

DEFAULT_CONFIG = AnalyzerConfig()

def dataclass_to_dict(dc) -> Dict[str, Any]:
    return dataclasses.asdict(dc)

def dict_to_dataclass(cls, d):
    if isinstance(d, cls):
        return d
    # filter unknown keys
    fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k:v for k,v in (d or {}).items() if k in fields}
    return cls(**filtered)

def load_analyzer_config(path: str = ANALYZER_STATE_FILE) -> AnalyzerConfig:
    """Read an analyzer config from JSON.

    A missing or unreadable file falls back to the defaults. Values are not
    validated here; the analyzer rejects bad ones when it is built.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("No analyzer config at %s, using defaults", path)
        return AnalyzerConfig()
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read analyzer config %s (%s), using defaults", path, e)
        return AnalyzerConfig()
    if not isinstance(data, dict):
        logger.warning("Analyzer config %s is not a JSON object, using defaults", path)
        return AnalyzerConfig()
    return dict_to_dataclass(AnalyzerConfig, data)

def save_analyzer_config(config: AnalyzerConfig, path: str = ANALYZER_STATE_FILE) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dataclass_to_dict(config), f, indent=2)

class PresetStore:
    def __init__(self, dir_path: str = PRESET_DIR):
        self.dir = dir_path
        os.makedirs(self.dir, exist_ok=True)

    def _path(self, name: str) -> str:
        # preset names are plain file stems inside the preset dir
        if (not isinstance(name, str) or not name.strip() or name.startswith(".")
                or os.path.basename(name) != name or "/" in name or "\\" in name):
            raise ValueError(f"Invalid preset name: {name!r}")
        return os.path.join(self.dir, f"{name}.json")

    def list_presets(self):
        out = []
        for name in os.listdir(self.dir):
            if name.endswith(".json"):
                out.append(name[:-5])
        return sorted(out)

    def save(self, name: str, config: AnalyzerConfig):
        with open(self._path(name), "w", encoding="utf-8") as f:
            json.dump(dataclass_to_dict(config), f, indent=2)
        logger.info("Saved preset %r", name)

    def load(self, name: str) -> AnalyzerConfig:
        with open(self._path(name), "r", encoding="utf-8") as f:
            data = json.load(f)
        return dict_to_dataclass(AnalyzerConfig, data)

    def delete(self, name: str):
        os.remove(self._path(name))
