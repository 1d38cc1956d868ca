"""Common utilities for tome metadata resolution."""

from . import http_utils
from . import prompts
from . import regex_patterns

__all__ = ["http_utils", "prompts", "regex_patterns"]
