"""Top-level pytest configuration.

Qt runs headless under the offscreen platform for every test module. The
QApplication fixture itself lives in ``tests/conftest.py``.
"""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
