import yaml
from typing import Dict, Any, Optional
from .models import EmulatorConfig, CpuInitialState, DisplayConfig

# @intent:responsibility 設定ファイルの欠落・不正を表す例外です。
class ConfigError(ValueError):
    pass

class ConfigLoader:
    def load_from_file(self, path: str) -> EmulatorConfig:
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed config file {path}: {e}") from e
        return self.parse_config(data or {})

    def parse_config(self, data: Dict[str, Any]) -> EmulatorConfig:
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

        # Parse Initial State
        initial_state_data = self._parse_section(data, "initial_state")
        registers = {}
        for name, value in self._parse_section(initial_state_data, "registers").items():
            registers[str(name).lower()] = self._parse_int(value)
        ime = initial_state_data.get("ime")
        initial_state = CpuInitialState(
            pc=self._parse_int(initial_state_data.get("pc", 0)),
            sp=self._parse_int(initial_state_data.get("sp", 0)),
            ime=None if ime is None else bool(ime),
            registers=registers
        )

        # Parse Display
        display_data = self._parse_section(data, "display")
        display = DisplayConfig(
            headless=bool(display_data.get("headless", False)),
            scale=self._parse_int(display_data.get("scale", 3)),
            frame_limit=self._parse_optional_int(display_data.get("frame_limit"))
        )

        return EmulatorConfig(
            rom=data.get("rom"),
            opcode_table=data.get("opcode_table"),
            initial_state=initial_state,
            display=display,
            max_steps=self._parse_optional_int(data.get("max_steps")),
            trace=bool(data.get("trace", False))
        )

    def _parse_section(self, data: Dict[str, Any], key: str) -> Dict[str, Any]:
        section = data.get(key)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigError(f"Config section '{key}' must be a mapping, got {type(section).__name__}")
        return section

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.lower().startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError as e:
                raise ConfigError(f"Invalid integer format: {value}") from e
        raise ConfigError(f"Invalid integer format: {value}")
