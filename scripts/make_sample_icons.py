#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from pathlib import Path

SAMPLES = [
    ("1F600", "😀", "grinning face", "#FCEA2B"),
    ("1F60D", "😍", "smiling face with heart-eyes", "#FCEA2B"),
    ("2764", "❤", "red heart", "#D22F27"),
]

SVG_TEMPLATE = """<svg id="emoji" viewBox="0 0 72 72" xmlns="http://www.w3.org/2000/svg">
  <g id="color">
    <circle cx="36" cy="36" r="23" fill="{color}"/>
  </g>
  <g id="line">
    <circle cx="36" cy="36" r="23" fill="none" stroke="#000000" stroke-width="2"/>
  </g>
</svg>
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Write sample SVG icons and a matching catalog document")
    parser.add_argument("--output", required=True, help="Directory for the generated .svg files")
    parser.add_argument("--catalog", required=True, help="Path of the catalog JSON to write")
    parser.add_argument("--unknown", type=int, default=1, help="Extra icons with no catalog entry")
    args = parser.parse_args()

    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)

    records = []
    for hexcode, emoji, annotation, color in SAMPLES:
        (output / f"{hexcode}.svg").write_text(SVG_TEMPLATE.format(color=color), encoding="utf-8")
        records.append(
            {
                "emoji": emoji,
                "hexcode": hexcode,
                "group": "smileys-emotion",
                "subgroups": "face-smiling",
                "annotation": annotation,
                "tags": "",
                "skintone": "",
            }
        )

    for index in range(args.unknown):
        (output / f"E{index:03d}0.svg").write_text(SVG_TEMPLATE.format(color="#92D3F5"), encoding="utf-8")

    catalog = Path(args.catalog)
    catalog.parent.mkdir(parents=True, exist_ok=True)
    catalog.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")

    print(f"Wrote {len(SAMPLES) + args.unknown} icons to {output} and catalog {catalog}")


if __name__ == "__main__":
    main()
