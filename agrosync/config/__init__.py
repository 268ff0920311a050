"""
AgroSync configuration package
"""

from .config_loader import load_config

__all__ = ['load_config']
