"""
System components for pcakit.
"""

from pcakit.components.config import Config, ConfigManager
