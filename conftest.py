# Puts the repository root on sys.path so the tests import the working tree's
# 'spreadvoice' package even when it has not been pip-installed.
from __future__ import annotations

from pathlib import Path
import sys


ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
