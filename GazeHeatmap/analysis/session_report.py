from __future__ import annotations

import argparse
import sys
from typing import Dict, List, Optional, Tuple

from GazeHeatmap.archive.session_io import read_archive
from GazeHeatmap.capture.models import SessionArchive
from GazeHeatmap.core.errors import MalformedArchive


def page_counts(archive: SessionArchive) -> Dict[str, Tuple[int, int]]:
    """(gaze, pointer) counts per page, in first-visit order."""
    counts: Dict[str, List[int]] = {p: [0, 0] for p in archive.session_info.pages_visited}
    for p in archive.gaze_points:
        counts.setdefault(p.page, [0, 0])[0] += 1
    for p in archive.mouse_points:
        counts.setdefault(p.page, [0, 0])[1] += 1
    return {page: (c[0], c[1]) for page, c in counts.items()}


def summarize(archive: SessionArchive) -> List[str]:
    info = archive.session_info
    lines = [
        f"Duration:     {info.duration}s",
        f"Gaze points:  {len(archive.gaze_points)}",
        f"Mouse points: {len(archive.mouse_points)}",
        f"Pages:        {len(info.pages_visited)}",
    ]
    for page, (g, m) in page_counts(archive).items():
        lines.append(f"  {page:<24} gaze={g:<6} mouse={m}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="python -m GazeHeatmap.analysis.session_report")
    ap.add_argument("session", help="exported session JSON")
    ap.add_argument("--png", help="write a density figure for --page to this path")
    ap.add_argument("--page", help="page route for the figure (default: first visited page)")
    ap.add_argument("--counts-png", help="write a per-page count bar chart to this path")
    args = ap.parse_args(argv)

    try:
        archive = read_archive(args.session)
    except MalformedArchive as e:
        print(f"Invalid session file: {e}")
        return 2
    for line in summarize(archive):
        print(line)

    if args.png:
        page = args.page or (archive.session_info.pages_visited[0] if archive.session_info.pages_visited else None)
        if page is None:
            print("Session has no pages; no figure written.")
            return 1
        from GazeHeatmap.analysis.plots import fig_page_density
        import matplotlib.pyplot as plt  # type: ignore

        gaze = [p for p in archive.gaze_points if p.page == page]
        mouse = [p for p in archive.mouse_points if p.page == page]
        fig = fig_page_density(gaze, mouse, page)
        fig.savefig(args.png, dpi=150)
        plt.close(fig)
        print(f"Figure written to {args.png}")

    if args.counts_png:
        from GazeHeatmap.analysis.plots import fig_page_counts
        import matplotlib.pyplot as plt  # type: ignore

        fig = fig_page_counts(page_counts(archive))
        fig.savefig(args.counts_png, dpi=150)
        plt.close(fig)
        print(f"Figure written to {args.counts_png}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
