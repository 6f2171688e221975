"""Shared utilities for the interview tracking system."""

from .config_loader import get_nested_config, load_config
from .observation_io import iter_observation_records
from .synthetic_feed import SyntheticObservationFeed

__all__ = [
    'get_nested_config',
    'load_config',
    'iter_observation_records',
    'SyntheticObservationFeed',
]
