"""
Unit tests for configuration and settings persistence.
"""
import os
import tempfile
import unittest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_mtm.utils.config_loader import load_config, get_setting
from energy_mtm.utils.settings_store import Settings, SettingsStore, SettingsError


class TestConfigLoader(unittest.TestCase):
    """Test config loading."""

    def test_missing_file_gives_empty_config(self):
        """Test a missing config file yields an empty dict."""
        self.assertEqual(load_config('does/not/exist.yaml'), {})

    def test_shipped_config(self):
        """Test the shipped config file parses."""
        config = load_config(str(Path(__file__).parent.parent / 'config' / 'config.yaml'))

        self.assertEqual(get_setting(config, 'valuation.default_state'), 'NSW')
        self.assertFalse(get_setting(config, 'valuation.strict_lookups'))

    def test_get_setting_default(self):
        """Test dotted lookups fall back to the default."""
        config = {'api': {'base_url': 'http://x'}}

        self.assertEqual(get_setting(config, 'api.base_url'), 'http://x')
        self.assertEqual(get_setting(config, 'api.timeout', 10), 10)
        self.assertEqual(get_setting(config, 'api.base_url.host', 'none'), 'none')


class TestSettingsStore(unittest.TestCase):
    """Test settings store."""

    def setUp(self):
        """Set up a store in a temporary directory."""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, 'nested', 'settings.yaml')
        self.store = SettingsStore(self.path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_defaults_when_missing(self):
        """Test defaults are used when no file exists."""
        settings = self.store.load()

        self.assertEqual(settings.volume_shapes['flat'], [8.33] * 12)
        self.assertIn('TAS', settings.states)
        self.assertIn('Swap', settings.contract_types['wholesale'])

    def test_update_persists(self):
        """Test updates are written and reloaded."""
        shapes = {'flat': [8.33] * 12, 'summer': [12.0, 12.0, 9.0, 7.0, 6.0, 5.0,
                                                  5.0, 6.0, 7.0, 9.0, 10.0, 12.0]}
        self.store.update_volume_shapes(shapes)

        reloaded = SettingsStore(self.path).load()
        self.assertEqual(reloaded.volume_shapes, shapes)
        self.assertEqual(reloaded.unit_types, ['Energy', 'Green'])

    def test_update_replaces_table(self):
        """Test updates install a new volume shape table."""
        before = self.store.volume_shapes
        self.store.update_volume_shapes(dict(before))

        self.assertIsNot(self.store.volume_shapes, before)

    def test_malformed_shape_rejected(self):
        """Test shapes without 12 entries are rejected."""
        with self.assertRaises(SettingsError):
            self.store.update_volume_shapes({'flat': [10.0] * 10})

        self.assertFalse(os.path.exists(self.path))

    def test_corrupt_file_keeps_defaults(self):
        """Test an unreadable file keeps the defaults."""
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, 'w') as f:
            f.write('volume_shapes: [unclosed')

        settings = self.store.load()
        self.assertEqual(settings, Settings())


if __name__ == '__main__':
    unittest.main()
