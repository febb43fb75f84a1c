"""Centralized configuration for StudyCalc.

This module defines:
- Input validation limits (length, nesting depth)
- Evaluator settings (angle mode, factorial guard, display precision)
- Allowed function and constant names
- Regex patterns used while normalizing input
- Location of the persisted key-value store

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with STUDYCALC_)
"""

import os
import re
from pathlib import Path

try:
    import importlib.metadata

    VERSION = importlib.metadata.version("studycalc")
except importlib.metadata.PackageNotFoundError:
    # Running from a source checkout
    VERSION = "1.0.0"

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("STUDYCALC_MAX_INPUT_LENGTH", "1000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("STUDYCALC_MAX_EXPRESSION_DEPTH", "100")
)  # parser recursion

# Evaluator configuration
ANGLE_MODES = ("DEG", "RAD")
DEFAULT_ANGLE_MODE = os.getenv("STUDYCALC_DEFAULT_ANGLE_MODE", "DEG").upper()
FACTORIAL_LIMIT = int(
    os.getenv("STUDYCALC_FACTORIAL_LIMIT", "170")
)  # 171! overflows a double
DISPLAY_DECIMALS = int(os.getenv("STUDYCALC_DISPLAY_DECIMALS", "10"))
WORKING_PRECISION_BITS = 53  # same mantissa as an IEEE double

# History of the scientific calculator
MAX_HISTORY = int(os.getenv("STUDYCALC_MAX_HISTORY", "5"))
HISTORY_STORE_KEY = "scientific-history"

# Logging
LOG_LEVEL = os.getenv("STUDYCALC_LOG_LEVEL", "WARNING").upper()

# Persisted key-value store
STORE_DIR = Path(os.getenv("STUDYCALC_STORE_DIR", str(Path.home() / ".studycalc")))
STORE_FILE_NAME = "store.json"
STORE_VERSION = 1  # Increment when the store format changes

ALLOWED_FUNCTIONS = ("sin", "cos", "tan", "log", "ln", "sqrt", "abs")
ALLOWED_CONSTANTS = ("pi", "e")
TRIG_FUNCTIONS = ("sin", "cos", "tan")

ALLOWED_CHARS_RE = re.compile(r"^[0-9+\-*/().,%!^a-z]+$")
WHITESPACE_RE = re.compile(r"\s+")
IDENTIFIER_RE = re.compile(r"[a-z]+")
NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?")
PI_SYMBOL = "π"
