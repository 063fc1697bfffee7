import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

from .models import StackBundle


def json_serial(obj):
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Type {type(obj)} not serializable")


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_json(record: Dict[str, Any], path: Path) -> Path:
    ensure_dir(path.parent)
    path.write_text(json.dumps(record, indent=2, default=json_serial), encoding="utf-8")
    return path


def write_bundle(bundle: StackBundle, output_dir: Path) -> Path:
    return write_json(bundle.to_dict(), output_dir / f"{bundle.name}.json")


def write_bundles(bundles: Mapping[str, StackBundle], output_dir: Path) -> Dict[str, Path]:
    return {name: write_bundle(bundle, output_dir) for name, bundle in bundles.items()}


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
