from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def load_step_from_json(path: str | Path) -> dict[str, Any]:
    step_path = Path(path)
    if not step_path.exists():
        raise FileNotFoundError(f"Step file not found: {step_path}")

    data = json.loads(step_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Step file root must be a JSON object.")

    step_type = data.get("type")
    if not isinstance(step_type, str) or not step_type.strip():
        raise ValueError("Step file requires a non-empty 'type'.")
    return data
