from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from .main import app

DEFAULT_OUT_PATH = Path(__file__).resolve().parents[2] / "interfaces" / "openapi.json"


def main(out_path: Optional[Path] = None) -> Path:
    """Write the service's OpenAPI schema, by default to interfaces/openapi.json."""
    out_path = out_path or DEFAULT_OUT_PATH
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(app.openapi(), indent=2))
    print(f"Wrote OpenAPI to {out_path}")
    return out_path


if __name__ == "__main__":
    main()
