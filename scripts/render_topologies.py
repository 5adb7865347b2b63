#!/usr/bin/env python3
"""Batch render all topology fixtures to SVG.

Outputs go to /tmp/circuit_layout_renders/.

Usage:
    python scripts/render_topologies.py [--planarity] [--theme light]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from circuit_layout.layout.engine import compute_layout
from circuit_layout.parser.topology import parse_topology
from circuit_layout.render.svg import render_svg
from circuit_layout.themes import THEMES

project_root = Path(__file__).parent.parent
OUTPUT_DIR = Path("/tmp/circuit_layout_renders")
TOPOLOGIES_DIR = project_root / "tests" / "fixtures" / "topologies"

FIXTURE_FILES = sorted(TOPOLOGIES_DIR.glob("*.json"))


def render_file(
    json_path: Path, output_dir: Path, theme_name: str, *, planarity: bool = False
) -> tuple[str, list[str]]:
    """Parse, lay out, and render a topology file to SVG.

    Returns (name, list_of_issues).
    """
    name = json_path.stem
    try:
        topology = parse_topology(json_path.read_text())
    except ValueError as e:
        return name, [f"PARSE ERROR: {e}"]

    try:
        layout = compute_layout(topology, prioritize_planarity=planarity)
    except ValueError as e:
        return name, [f"LAYOUT ERROR: {e}"]

    kinds = {b.id: b.kind for b in topology.branches}
    svg_str = render_svg(layout, THEMES[theme_name], kinds=kinds, title=name)
    (output_dir / f"{name}.svg").write_text(svg_str)

    issues = []
    curved = sum(1 for e in layout.edges if e.is_curved)
    if curved:
        issues.append(f"{curved} curved edge(s)")
    return name, issues


def main():
    parser = argparse.ArgumentParser(description="Batch render topology fixtures")
    parser.add_argument(
        "--planarity", action="store_true", help="Enable annealing planarity refinement"
    )
    parser.add_argument("--theme", choices=sorted(THEMES), default="dark")
    args = parser.parse_args()

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    print(f"Rendering {len(FIXTURE_FILES)} files to {OUTPUT_DIR}/")
    print()

    max_name_len = max((len(f.stem) for f in FIXTURE_FILES), default=0)
    any_errors = False

    for json_path in FIXTURE_FILES:
        name, issues = render_file(json_path, OUTPUT_DIR, args.theme, planarity=args.planarity)
        status = "OK" if not issues else "NOTE"
        if any("ERROR" in i for i in issues):
            status = "FAIL"
            any_errors = True

        print(f"  {name:<{max_name_len}}  [{status}]")
        for issue in issues:
            print(f"    - {issue}")

    print(f"\nOutputs in: {OUTPUT_DIR}/")

    if any_errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
