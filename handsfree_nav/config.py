"""
Configuration management for the hands-free navigation engine.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass


CONFIG_ENV_VAR = "HANDSFREE_CONFIG"


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int


@dataclass
class GesturesConfig:
    """Brightness gesture classifier configuration."""
    cooldown_ms: int
    min_confidence: float
    open_palm_above: float
    fist_below: float
    thumbs_up_low: float
    thumbs_up_high: float


@dataclass
class FocusConfig:
    """Focus index configuration."""
    include_headings: bool


@dataclass
class DispatcherConfig:
    """Command dispatcher configuration."""
    scroll_step_px: int
    zoom_in_factor: float
    zoom_out_factor: float
    zoom_min: float
    zoom_max: float
    feedback_clear_ms: int
    sample_document: str


@dataclass
class ServerConfig:
    """Control server and browser settings."""
    host: str
    port: int
    start_url: str
    headless: bool


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    gestures: GesturesConfig
    focus: FocusConfig
    dispatcher: DispatcherConfig
    server: ServerConfig


def default_config_path() -> Path:
    """Path of the configuration file shipped with the package."""
    return Path(__file__).parent / "config.default.yaml"


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses $HANDSFREE_CONFIG or the
            packaged config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR) or default_config_path()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    camera_data = data['camera']
    camera = CameraConfig(
        index=camera_data['index'],
        width=camera_data['width'],
        height=camera_data['height'],
        fps=camera_data['fps']
    )

    gestures_data = data['gestures']
    gestures = GesturesConfig(
        cooldown_ms=gestures_data['cooldown_ms'],
        min_confidence=gestures_data['min_confidence'],
        open_palm_above=gestures_data['brightness']['open_palm_above'],
        fist_below=gestures_data['brightness']['fist_below'],
        thumbs_up_low=gestures_data['brightness']['thumbs_up_low'],
        thumbs_up_high=gestures_data['brightness']['thumbs_up_high']
    )

    focus = FocusConfig(include_headings=data['focus']['include_headings'])

    dispatcher_data = data['dispatcher']
    dispatcher = DispatcherConfig(
        scroll_step_px=dispatcher_data['scroll_step_px'],
        zoom_in_factor=dispatcher_data['zoom']['in_factor'],
        zoom_out_factor=dispatcher_data['zoom']['out_factor'],
        zoom_min=dispatcher_data['zoom']['min'],
        zoom_max=dispatcher_data['zoom']['max'],
        feedback_clear_ms=dispatcher_data['feedback_clear_ms'],
        sample_document=dispatcher_data['sample_document']
    )

    server_data = data['server']
    server = ServerConfig(
        host=server_data['host'],
        port=server_data['port'],
        start_url=server_data['start_url'],
        headless=server_data['headless']
    )

    return Cfg(
        camera=camera,
        gestures=gestures,
        focus=focus,
        dispatcher=dispatcher,
        server=server
    )
