"""Layout helpers

Converts live cell geometry to relative geometry and derives the split that
recreates each pane from its predecessor.
"""

from collections.abc import Sequence

from ..adapters.base import PaneInfo, SplitDirection, SplitSpec
from ..config import GEOMETRY_PRECISION, MAX_SPLIT_PERCENT, MIN_SPLIT_PERCENT
from .models import Geometry, Pane

# Panes whose tops (lefts) differ by less than this share a row (column)
_SAME_ROW_EPSILON = 1e-3


def relative_geometry(pane: PaneInfo, panes: list[PaneInfo]) -> Geometry:
    """Geometry of ``pane`` as fractions of the area covered by ``panes``.

    The window extent is taken from the panes themselves rather than the
    reported window size, so status lines and borders do not skew ratios.
    """
    total_w = max((p.left + p.width for p in panes), default=0)
    total_h = max((p.top + p.height for p in panes), default=0)
    if total_w <= 0 or total_h <= 0:
        return Geometry()

    def ratio(value: int, total: int) -> float:
        return round(value / total, GEOMETRY_PRECISION)

    return Geometry(
        left=ratio(pane.left, total_w),
        top=ratio(pane.top, total_h),
        width=ratio(pane.width, total_w),
        height=ratio(pane.height, total_h),
    )


def split_for(previous: Pane, pane: Pane, following: Sequence[Pane] = ()) -> SplitSpec:
    """Split to apply to ``previous`` so that ``pane`` appears after it.

    Same row -> side by side (horizontal), otherwise stacked (vertical).
    Splitting ``previous`` must also leave room for the later panes that
    continue the same row (or column), so the new pane's share covers
    ``pane`` up to the far edge of the last of them.
    """
    prev_g, g = previous.geometry, pane.geometry
    if abs(prev_g.top - g.top) < _SAME_ROW_EPSILON:
        direction = SplitDirection.HORIZONTAL
        run = [p.geometry for p in following if abs(p.geometry.top - g.top) < _SAME_ROW_EPSILON]
        mine = max([g.left + g.width] + [r.left + r.width for r in run]) - g.left
        theirs = prev_g.width
    else:
        direction = SplitDirection.VERTICAL
        run = [p.geometry for p in following if abs(p.geometry.left - g.left) < _SAME_ROW_EPSILON]
        mine = max([g.top + g.height] + [r.top + r.height for r in run]) - g.top
        theirs = prev_g.height

    total = mine + theirs
    percent = round(100 * mine / total) if total > 0 else 50
    percent = max(MIN_SPLIT_PERCENT, min(MAX_SPLIT_PERCENT, percent))
    return SplitSpec(direction=direction, percent=percent)
