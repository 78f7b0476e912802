"""
Config Reader Module
Loads and validates the project's alchemy.json configuration.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

CONFIG_FILENAME = 'alchemy.json'
DEFAULT_CALLEE = 'craftingStyles'
DEFAULT_EXTENSIONS = ['.js', '.jsx', '.ts', '.tsx']


class ConfigurationError(Exception):
    """Raised when the configuration file is missing or malformed."""


@dataclass
class AlchemyConfig:
    exclude: List[str] = field(default_factory=list)
    module: bool = False
    callee: str = DEFAULT_CALLEE
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'exclude': list(self.exclude),
            'module': self.module,
            'callee': self.callee,
            'extensions': list(self.extensions),
        }


def _string_list(config: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = config.get(key, default)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"'{key}' must be a list of strings")
    return list(value)


class ConfigReader:
    def __init__(self):
        self.config: Dict[str, Any] = {}

    def read_config(self, config_path: Union[str, Path]) -> AlchemyConfig:
        """Read and validate an alchemy.json file."""
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                self.config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e
        return self.parse(self.config)

    def parse(self, config: Any) -> AlchemyConfig:
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration must be a JSON object")

        module = config.get('module', False)
        if not isinstance(module, bool):
            raise ConfigurationError("'module' must be true or false")

        callee = config.get('callee', DEFAULT_CALLEE)
        if not isinstance(callee, str) or not callee:
            raise ConfigurationError("'callee' must be a non-empty string")

        return AlchemyConfig(
            exclude=_string_list(config, 'exclude', []),
            module=module,
            callee=callee,
            extensions=_string_list(config, 'extensions', DEFAULT_EXTENSIONS),
        )


def load_config(root_dir: Union[str, Path] = '.') -> AlchemyConfig:
    """Load alchemy.json from the project root."""
    return ConfigReader().read_config(Path(root_dir) / CONFIG_FILENAME)


def write_default_config(root_dir: Union[str, Path] = '.', force: bool = False) -> Path:
    path = Path(root_dir) / CONFIG_FILENAME
    if path.exists() and not force:
        raise ConfigurationError(f"{path} already exists")
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(AlchemyConfig().to_dict(), f, indent=2)
        f.write('\n')
    return path
