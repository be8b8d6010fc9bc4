"""
Settings and configuration for ztarcc.

Paths can be overridden through environment variables.
"""

import os
from pathlib import Path

# Data directory paths
PACKAGE_DIR = Path(__file__).parent
DATA_DIR = PACKAGE_DIR / "data"

# Compiled dictionary - defaults to data/ztarcc.dic
DEFAULT_DICTIONARY_PATH = DATA_DIR / "ztarcc.dic"
DICTIONARY_PATH = Path(os.environ.get("ZTARCC_DICTIONARY_PATH", DEFAULT_DICTIONARY_PATH))

# Profile manifest used by the dictionary compiler
DEFAULT_MANIFEST_PATH = DATA_DIR / "manifest.json"
# Same profiles for OpenCC copies with a single TWPhrases.txt
TWPHRASES_MANIFEST_PATH = DATA_DIR / "manifest-twphrases.json"
MANIFEST_PATH = Path(os.environ.get("ZTARCC_MANIFEST_PATH", DEFAULT_MANIFEST_PATH))

# Worker threads for line-parallel conversion
WORKERS = int(os.environ.get("ZTARCC_WORKERS", "4"))

# Debug mode
DEBUG = os.environ.get("ZTARCC_DEBUG", "").lower() in ("1", "true", "yes")

# zlib level used for the artifact payload
COMPRESSION_LEVEL = 6

# Dictionary keys at least this long are handed to the segmenter as words
SEGMENTER_WORD_MIN_LENGTH = 2

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
