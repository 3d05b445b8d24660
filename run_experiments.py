"""
Run the full convergence experiment
===================================

Usage:
    python run_experiments.py
    python run_experiments.py --trials 16 --variants attention attention_fft
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from attention_fft.harness import main


if __name__ == '__main__':
    main()
