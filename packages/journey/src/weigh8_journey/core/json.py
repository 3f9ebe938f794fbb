import json
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def stable_json_dumps(obj: Any, *, indent: int | None = 2) -> str:
    """
    Deterministic JSON:
      - sort_keys=True
      - ensure_ascii=False
      - stable separators when indent is None
      - datetimes and other non-JSON values rendered with str()
    """
    if indent is None:
        return json.dumps(
            obj,
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
            default=str,
        )
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, indent=indent, default=str)
