#!/usr/bin/env python3
"""Write JSON schemas for the report models and the shipped rubric definition."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scoring.models import AnalysisReport, DimensionResult  # noqa: E402
from scoring.rubric import SALES_CALL_RUBRIC, Rubric  # noqa: E402

SCHEMA_MODELS = (AnalysisReport, DimensionResult, Rubric)


def _write_json(path: Path, document: dict) -> None:
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def export(target_dir: Path) -> list:
    target_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for model_cls in SCHEMA_MODELS:
        path = target_dir / f"{model_cls.__name__}.schema.json"
        _write_json(path, model_cls.model_json_schema())
        written.append(path)

    rubric_path = target_dir / "sales_call_rubric.json"
    _write_json(rubric_path, SALES_CALL_RUBRIC.model_dump())
    written.append(rubric_path)
    return written


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("target", nargs="?", default="schemas", help="Output directory (default: schemas)")
    args = parser.parse_args(argv)

    for path in export(Path(args.target)):
        print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
