"""Configuration"""
from .settings import Settings, get_settings, settings
