"""QAP Workflow - multi-level Quality Assurance Plan review engine"""

__version__ = "1.0.0"
