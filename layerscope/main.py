"""Launch the Layerscope explorer.

``layerscope path/to/composition.json --log-level DEBUG`` opens the window
with that composition already loaded into the outline, radial and 3D views.
"""
from __future__ import annotations

from typing import Sequence

from layerscope.app import LayerscopeApplication


def main(argv: Sequence[str] | None = None) -> int:
    """Run the explorer until its window closes and return the exit status."""

    return LayerscopeApplication(argv).run()


if __name__ == "__main__":
    raise SystemExit(main())
