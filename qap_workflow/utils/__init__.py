"""Utility modules"""
from .logger import get_logger, setup_logging
from .idgen import generate_id, generate_qap_id, generate_correlation_id
from .time import utc_now
