from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

from ib_engine.core.config import settings  # noqa: E402
from ib_engine.schemas import RouteOut  # noqa: E402
from ib_engine.services.route_table import RouteTable, build_underlyings_table  # noqa: E402


def _join(prefix: str, pattern: str) -> str:
    base = prefix.rstrip("/")
    if not base:
        return pattern
    if pattern == "/":
        return base + "/"
    return base + pattern


def build_rows(table: RouteTable, prefix: str = "") -> list[dict[str, str]]:
    return [
        RouteOut(
            name=route.name or "",
            method=route.method,
            path=_join(prefix, route.pattern),
            endpoint=route.endpoint,
        ).model_dump()
        for route in table
    ]


def format_rows(rows: list[dict[str, str]]) -> str:
    if not rows:
        return ""
    name_width = max(len(row["name"]) for row in rows)
    method_width = max(len(row["method"]) for row in rows)
    path_width = max(len(row["path"]) for row in rows)
    lines = []
    for row in rows:
        lines.append(
            f"{row['name']:>{name_width}} {row['method']:<{method_width}} "
            f"{row['path']:<{path_width}} {row['endpoint']}"
        )
    return "\n".join(line.rstrip() for line in lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="List the IB engine routes")
    parser.add_argument("--prefix", type=str, default=settings.ib_mount_path)
    parser.add_argument("--json", action="store_true")
    args = parser.parse_args()

    rows = build_rows(build_underlyings_table(), args.prefix)
    if args.json:
        print(json.dumps(rows, ensure_ascii=False, indent=2))
    else:
        print(format_rows(rows))


if __name__ == "__main__":
    main()
