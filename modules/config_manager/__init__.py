"""
Configuration Manager Module
============================

Responsibility:
- Centralized loading and validation of JSON configuration files.
- Schema validation followed by registry-aware logical validation
  (model, mode, engine, arguments, prediction types).
- Tuning grid size guardrails.
- Run id generation and configuration artifacts for reproducibility.
"""

from .config_manager import ConfigurationManager

__all__ = ['ConfigurationManager']
