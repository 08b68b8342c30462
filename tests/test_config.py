"""
Test cases for configuration loading.
"""
import os
import tempfile
import unittest
import sys
from pathlib import Path
from unittest import mock

import yaml

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from handsfree_nav.config import CONFIG_ENV_VAR, default_config_path, load_config


class TestLoadConfig(unittest.TestCase):
    """Test the packaged defaults and overrides."""

    def test_defaults(self):
        """Test values of the shipped configuration."""
        cfg = load_config()

        self.assertEqual(cfg.gestures.cooldown_ms, 2000)
        self.assertEqual(cfg.gestures.min_confidence, 0.4)
        self.assertEqual(cfg.gestures.open_palm_above, 150)
        self.assertEqual(cfg.gestures.fist_below, 80)
        self.assertEqual((cfg.gestures.thumbs_up_low, cfg.gestures.thumbs_up_high), (100, 140))
        self.assertEqual((cfg.camera.width, cfg.camera.height), (200, 150))
        self.assertEqual(cfg.dispatcher.scroll_step_px, 100)
        self.assertEqual(cfg.dispatcher.feedback_clear_ms, 2000)
        self.assertEqual((cfg.dispatcher.zoom_min, cfg.dispatcher.zoom_max), (0.5, 3.0))
        self.assertTrue(cfg.focus.include_headings)

    def test_env_override(self):
        """Test that the environment variable selects another file."""
        with open(default_config_path()) as f:
            data = yaml.safe_load(f)
        data["dispatcher"]["scroll_step_px"] = 250

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "custom.yaml"
            path.write_text(yaml.safe_dump(data))
            with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(path)}):
                cfg = load_config()

        self.assertEqual(cfg.dispatcher.scroll_step_px, 250)

    def test_missing_file(self):
        """Test that a missing file is reported."""
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/handsfree.yaml")


if __name__ == '__main__':
    unittest.main()
