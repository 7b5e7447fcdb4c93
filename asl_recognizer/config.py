"""
Configuration management for the ASL alphabet recognizer.
"""
import logging
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, Union
from dataclasses import dataclass


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    index: int
    width: int
    height: int
    fps: int
    mirror: bool


@dataclass
class MediaPipeConfig:
    """MediaPipe Hands configuration settings."""
    max_num_hands: int
    min_detection_confidence: float
    min_tracking_confidence: float
    model_complexity: int


@dataclass
class DescriptorConfig:
    """Curl band limits, in degrees at the middle finger joint."""
    no_curl_start_limit: float
    half_curl_start_limit: float


@dataclass
class MatcherConfig:
    """Gesture matcher weighting."""
    curl_weight: float
    direction_weight: float
    min_confidence: float


@dataclass
class RecognitionConfig:
    """Recognition session settings."""
    cooldown_ms: int
    acceptance_threshold: float
    history_size: int


@dataclass
class LoaderConfig:
    """Retry policy for loading the landmark model."""
    attempts: int
    delay_ms: int


@dataclass
class DisplayConfig:
    """Display configuration settings."""
    show_landmarks: bool
    show_stats: bool
    recent_count: int
    window_name: str


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str


@dataclass
class Cfg:
    """Main configuration class."""
    camera: CameraConfig
    mediapipe: MediaPipeConfig
    descriptor: DescriptorConfig
    matcher: MatcherConfig
    recognition: RecognitionConfig
    loader: LoaderConfig
    display: DisplayConfig
    logging: LoggingConfig


def load_config(path: Optional[Union[str, Path]] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

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
        fps=camera_data['fps'],
        mirror=camera_data.get('mirror', True)
    )

    mp_data = data['mediapipe']
    mediapipe = MediaPipeConfig(
        max_num_hands=mp_data['max_num_hands'],
        min_detection_confidence=mp_data['min_detection_confidence'],
        min_tracking_confidence=mp_data['min_tracking_confidence'],
        model_complexity=mp_data.get('model_complexity', 1)
    )

    descriptor_data = data['descriptor']
    descriptor = DescriptorConfig(
        no_curl_start_limit=float(descriptor_data['no_curl_start_limit']),
        half_curl_start_limit=float(descriptor_data['half_curl_start_limit'])
    )
    if descriptor.half_curl_start_limit >= descriptor.no_curl_start_limit:
        raise ValueError("descriptor.half_curl_start_limit must be below descriptor.no_curl_start_limit")

    matcher_data = data['matcher']
    matcher = MatcherConfig(
        curl_weight=float(matcher_data['curl_weight']),
        direction_weight=float(matcher_data['direction_weight']),
        min_confidence=float(matcher_data.get('min_confidence', 0.0))
    )

    recognition_data = data['recognition']
    recognition = RecognitionConfig(
        cooldown_ms=recognition_data['cooldown_ms'],
        acceptance_threshold=float(recognition_data['acceptance_threshold']),
        history_size=recognition_data['history_size']
    )

    loader_data = data['loader']
    loader = LoaderConfig(
        attempts=loader_data['attempts'],
        delay_ms=loader_data['delay_ms']
    )

    display_data = data['display']
    display = DisplayConfig(
        show_landmarks=display_data['show_landmarks'],
        show_stats=display_data['show_stats'],
        recent_count=display_data['recent_count'],
        window_name=display_data['window_name']
    )

    logging_data = data.get('logging') or {}
    logging_cfg = LoggingConfig(level=str(logging_data.get('level', 'INFO')).upper())

    return Cfg(
        camera=camera,
        mediapipe=mediapipe,
        descriptor=descriptor,
        matcher=matcher,
        recognition=recognition,
        loader=loader,
        display=display,
        logging=logging_cfg
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
