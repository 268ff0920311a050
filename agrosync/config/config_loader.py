"""
Configuration loader for AgroSync
"""

import copy
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml
from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config/agrosync.yaml'

DEFAULT_CONFIG: Dict[str, Any] = {
    'database': {
        'url': 'sqlite+aiosqlite:///./data/agrosync.db',
        'echo': False
    },
    'remote': {
        'url': '',
        'api_key': '',
        'schema_path': '/rest/v1',
        'timeout': 10.0,
        'verify_ssl': True
    },
    'sync': {
        'settle_delay': 1.0,        # seconds to wait after reconnecting
        'auto_sync_interval': 30,   # seconds, 0 disables periodic sync
        'max_retries': 0,           # 0 keeps failed items forever
        'strict_mapping': False
    },
    'connectivity': {
        'mode': 'static',           # static | probe
        'initially_online': True,
        'probe_url': '',
        'probe_interval': 15.0,
        'probe_timeout': 5.0
    },
    'api': {
        'host': '0.0.0.0',
        'port': 8080,
        'api_key': 'development-key-change-in-production',
        'cors_origins': ['*']
    },
    'logging': {
        'level': 'INFO',
        'file': ''
    }
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from defaults, YAML file and environment"""

    load_dotenv()

    config = copy.deepcopy(DEFAULT_CONFIG)

    yaml_path = Path(config_path or os.getenv('AGROSYNC_CONFIG', DEFAULT_CONFIG_PATH))

    if yaml_path.exists():
        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if yaml_config:
                _deep_update(config, yaml_config)
                logger.info(f"Configuration loaded from {yaml_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load configuration from {yaml_path}: {e}")
            logger.error("Using default configuration")
    else:
        logger.warning(f"Configuration file {yaml_path} not found, using defaults")

    # Override with environment variables
    if os.getenv('AGROSYNC_API_KEY'):
        config['api']['api_key'] = os.getenv('AGROSYNC_API_KEY')

    if os.getenv('DATABASE_URL'):
        config['database']['url'] = os.getenv('DATABASE_URL')

    if os.getenv('REMOTE_URL'):
        config['remote']['url'] = os.getenv('REMOTE_URL')

    if os.getenv('REMOTE_API_KEY'):
        config['remote']['api_key'] = os.getenv('REMOTE_API_KEY')

    if os.getenv('LOG_LEVEL'):
        config['logging']['level'] = os.getenv('LOG_LEVEL', 'INFO').upper()

    logger.info("Configuration loaded successfully")
    return config


def _deep_update(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> None:
    """Deep update nested dictionary"""
    for key, value in update_dict.items():
        if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
            _deep_update(base_dict[key], value)
        else:
            base_dict[key] = value
