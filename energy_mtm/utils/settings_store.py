"""
Persisted dashboard settings: volume shapes, contract taxonomy and enumerations.
"""
import copy
import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Dict, List
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONTRACT_TYPES = {
    'retail': ['Retail Customer', 'Industrial Customer', 'Government Customer',
               'Small Business', 'Residential'],
    'wholesale': ['Swap', 'Cap', 'Floor', 'Forward', 'Option'],
    'offtake': ['Solar Farm', 'Wind Farm', 'Battery Storage', 'Hydro', 'Gas Peaker'],
}

DEFAULT_VOLUME_SHAPES = {
    'flat': [8.33] * 12,
    'solar': [6.5, 7.2, 8.8, 9.5, 10.2, 8.9, 9.1, 9.8, 8.6, 7.4, 6.8, 7.2],
    'wind': [11.2, 10.8, 9.2, 7.8, 6.5, 5.9, 6.2, 7.1, 8.4, 9.6, 10.8, 11.5],
    'custom': [5.0, 6.0, 7.5, 9.0, 11.0, 12.5, 13.0, 12.0, 10.5, 8.5, 7.0, 6.0],
}

DEFAULT_STATES = ['NSW', 'VIC', 'QLD', 'SA', 'WA', 'TAS', 'NT', 'ACT']

DEFAULT_INDEXATION_TYPES = ['Fixed', 'CPI', 'CPI + 1%', 'CPI + 0.5%', 'CPI + 2%',
                            'Escalation 2%', 'Escalation 3%']

DEFAULT_UNIT_TYPES = ['Energy', 'Green']


class SettingsError(ValueError):
    """Raised when a settings update is malformed."""


@dataclass
class Settings:
    """The settings blob shared by contract entry and valuation."""
    contract_types: Dict[str, List[str]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_CONTRACT_TYPES))
    volume_shapes: Dict[str, List[float]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_VOLUME_SHAPES))
    states: List[str] = field(default_factory=lambda: list(DEFAULT_STATES))
    indexation_types: List[str] = field(default_factory=lambda: list(DEFAULT_INDEXATION_TYPES))
    unit_types: List[str] = field(default_factory=lambda: list(DEFAULT_UNIT_TYPES))

    @classmethod
    def from_dict(cls, data: Dict) -> 'Settings':
        defaults = cls()
        return cls(
            contract_types=data.get('contract_types') or defaults.contract_types,
            volume_shapes={name: [float(v) for v in values]
                           for name, values in (data.get('volume_shapes') or defaults.volume_shapes).items()},
            states=data.get('states') or defaults.states,
            indexation_types=data.get('indexation_types') or defaults.indexation_types,
            unit_types=data.get('unit_types') or defaults.unit_types
        )

    def to_dict(self) -> Dict:
        return asdict(self)


def validate_volume_shapes(volume_shapes: Dict[str, List[float]]):
    """
    Check every volume shape has 12 monthly entries.

    Raises:
        SettingsError: If a shape is malformed
    """
    for name, values in volume_shapes.items():
        if len(values) != 12:
            raise SettingsError(f"Volume shape '{name}' has {len(values)} entries, expected 12")
        total = sum(values)
        if abs(total - 100) > 1:
            logger.warning(f"Volume shape '{name}' sums to {total:.2f}%")


class SettingsStore:
    """
    YAML-backed settings store.

    Settings are read once and written back wholesale on every update.
    Each update installs new objects so identity-based recalculation sees
    the change.
    """

    def __init__(self, settings_path: str = 'data/settings.yaml'):
        """
        Initialize settings store.

        Args:
            settings_path: Path to the settings YAML file
        """
        self.settings_path = settings_path
        self.settings = Settings()

    def load(self) -> Settings:
        """
        Load settings, keeping defaults if the file is missing or unreadable.

        Returns:
            Settings
        """
        if not os.path.exists(self.settings_path):
            logger.info(f"No settings at {self.settings_path}, using defaults")
            return self.settings

        try:
            with open(self.settings_path, 'r') as f:
                data = yaml.safe_load(f) or {}
            settings = Settings.from_dict(data)
            validate_volume_shapes(settings.volume_shapes)
            self.settings = settings
            logger.info(f"Loaded settings from {self.settings_path}")
        except (OSError, yaml.YAMLError, SettingsError) as e:
            logger.error(f"Error loading settings: {e}")

        return self.settings

    def save(self):
        """Write the current settings to disk."""
        settings_dir = os.path.dirname(self.settings_path)
        if settings_dir:
            os.makedirs(settings_dir, exist_ok=True)
        with open(self.settings_path, 'w') as f:
            yaml.safe_dump(self.settings.to_dict(), f, sort_keys=False)
        logger.debug(f"Saved settings to {self.settings_path}")

    def update(self, settings: Settings) -> Settings:
        """
        Replace all settings and persist them.

        Raises:
            SettingsError: If any volume shape is malformed
        """
        validate_volume_shapes(settings.volume_shapes)
        self.settings = copy.deepcopy(settings)
        self.save()
        logger.info("Settings updated")
        return self.settings

    def update_volume_shapes(self, volume_shapes: Dict[str, List[float]]) -> Settings:
        """Replace the volume shape table wholesale and persist it."""
        settings = copy.deepcopy(self.settings)
        settings.volume_shapes = {name: [float(v) for v in values]
                                  for name, values in volume_shapes.items()}
        return self.update(settings)

    @property
    def volume_shapes(self) -> Dict[str, List[float]]:
        return self.settings.volume_shapes
