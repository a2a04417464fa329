#!/usr/bin/env python3
"""Entry point for running the sheet rectifier without installing it.

Usage:
    python scripts/run_pipeline.py photo.jpg -o photo_new.jpg
    python scripts/run_pipeline.py photos/                # writes <stem>_new.jpg beside each photo
    python scripts/run_pipeline.py photos/ -c configs/quadrilateral.yaml
    python scripts/run_pipeline.py --help
"""

import sys
from pathlib import Path

# Make the src/ layout importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from sheet_rectifier.pipeline import main

if __name__ == "__main__":
    sys.exit(main())
