from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes size limits, warning thresholds, placeholder names, output
naming conventions, and the sensitive filename catalogue shared by the
builder, estimator, generator, and writer services.
"""

from typing import List

CURRENT_CONFIG_VERSION = "1.0.0"

# -----------------------------------------------------------------------------
# BUILDER LIMITS
# -----------------------------------------------------------------------------
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_CONCURRENCY = 10

# Bytes sniffed by the binary detector (largest magic signature offset)
BINARY_SNIFF_BYTES = 262

# -----------------------------------------------------------------------------
# DIRECTORY EXPANSION
# -----------------------------------------------------------------------------
# Read from each selected directory, in order; later rules win
IGNORE_FILE_NAMES: List[str] = [".gitignore", ".shotgunignore"]

# Directory names never descended into, ignore files or not
DEFAULT_EXCLUDED_DIRS: List[str] = [
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    "__pycache__",
    "node_modules",
]

# -----------------------------------------------------------------------------
# SIZE WARNING THRESHOLDS
# -----------------------------------------------------------------------------
LARGE_SIZE_THRESHOLD = 100 * 1024
VERY_LARGE_SIZE_THRESHOLD = 500 * 1024
EXCESSIVE_SIZE_THRESHOLD = 2048 * 1024

# Per-separator glyph/indent cost used by the tree overhead estimate
TREE_CHARS_PER_LEVEL = 6
# Markdown allowance per selected file
MARKDOWN_OVERHEAD_PER_FILE = 50
# Escaping allowance divisor (content / 20 == 5%)
ESCAPING_OVERHEAD_DIVISOR = 20

FILE_OPEN_TAG_PREFIX = '<file path="'
FILE_OPEN_TAG_SUFFIX = '">'
FILE_CLOSE_TAG = "</file>"

# -----------------------------------------------------------------------------
# TEMPLATE VARIABLES
# -----------------------------------------------------------------------------
VAR_TASK = "TASK"
VAR_RULES = "RULES"
VAR_CURRENT_DATE = "CURRENT_DATE"
VAR_SELECTED_FILES_COUNT = "SELECTED_FILES_COUNT"
VAR_FILE_STRUCTURE = "FILE_STRUCTURE"

# -----------------------------------------------------------------------------
# OUTPUT NAMING
# -----------------------------------------------------------------------------
OUTPUT_FILE_PREFIX = "shotgun_prompt"
OUTPUT_FILE_EXTENSION = ".md"
OUTPUT_TIMESTAMP_FORMAT = "%Y%m%d_%H%M"
WRITE_PROBE_NAME = ".shotgun_write_test"
TEMP_FILE_SUFFIX = ".tmp"
MAX_COLLISION_ATTEMPTS = 1000

# -----------------------------------------------------------------------------
# TOKEN COUNTING
# -----------------------------------------------------------------------------
DEFAULT_TARGET_MODEL = "gpt-4o"
CHARS_PER_TOKEN_AVG = 4

# -----------------------------------------------------------------------------
# SENSITIVE FILE CATALOGUE
# -----------------------------------------------------------------------------
# Matched case-insensitively against '/'-normalized paths.
SENSITIVE_PATTERNS: List[str] = [
    r"\.env$",
    r"\.env\..*$",
    r".*\.key$",
    r".*\.pem$",
    r".*\.p12$",
    r".*\.pfx$",
    r".*\.jks$",
    r".*\.keystore$",
    r"id_rsa$",
    r"id_ed25519$",
    r"\.ssh/.*$",
    r"secrets?\..*$",
    r"password.*\..*$",
    r"credentials?\..*$",
    r"config/.*\.conf$",
    r"\.aws/.*$",
]
