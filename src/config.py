from dataclasses import dataclass, field
from pathlib import Path
from typing import Union
import json
import logging

clean_out = logging.getLogger('mips.clean')

ROOT_DIR = Path(__file__).resolve().parents[1]
CONFIG_FILE = ROOT_DIR / "config.json"


@dataclass
class Directories:
    programs: str = "mips_programs"
    docs: str = "docs"


@dataclass
class SimulationSettings:
    gate_branch_fetch: bool = False
    autoplay_interval: float = 0.8


@dataclass
class AppConfig:
    title: str = "MIPS Pipeline Viewer"
    port: int = 8080
    log_level: str = "INFO"
    directories: Directories = field(default_factory=Directories)
    simulation: SimulationSettings = field(default_factory=SimulationSettings)


def _expect(value, kind, key: str):
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"config key '{key}' must be of type {kind.__name__}, got {value!r}")
    return value


def parse_config(cfg: dict) -> AppConfig:
    """Build an AppConfig from the raw json dict, defaults fill missing keys."""
    defaults = AppConfig()
    dirs = cfg.get('directories', {})
    sim = cfg.get('simulation', {})
    log_level = _expect(cfg.get('log_level', defaults.log_level), str, 'log_level').upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"config key 'log_level' has unknown level {log_level!r}")

    return AppConfig(
        title=_expect(cfg.get('title', defaults.title), str, 'title'),
        port=_expect(cfg.get('port', defaults.port), int, 'port'),
        log_level=log_level,
        directories=Directories(
            programs=_expect(dirs.get('programs', defaults.directories.programs), str, 'directories.programs'),
            docs=_expect(dirs.get('docs', defaults.directories.docs), str, 'directories.docs'),
        ),
        simulation=SimulationSettings(
            gate_branch_fetch=_expect(sim.get('gate_branch_fetch', defaults.simulation.gate_branch_fetch),
                                      bool, 'simulation.gate_branch_fetch'),
            autoplay_interval=_expect(sim.get('autoplay_interval', defaults.simulation.autoplay_interval),
                                      float, 'simulation.autoplay_interval'),
        ),
    )


def load_config(path: Union[str, Path] = CONFIG_FILE) -> AppConfig:
    path = Path(path)
    if not path.exists():
        clean_out.warning(f"Config file {path} not found, using defaults.")
        return AppConfig()

    with open(path, 'r', encoding='utf-8') as f:
        try:
            cfg = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed config file {path}: {e}") from e

    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {path} must hold a json object")
    return parse_config(cfg)
