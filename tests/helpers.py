import copy
import json
from pathlib import Path

from fgps.schema import Snapshot


def write_snapshot(tmp_path: Path, data: dict, filename: str = "snapshot.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_snapshot(data: dict) -> dict:
    return copy.deepcopy(data)


def simple_snapshot_dict(
    take_home: float = 6000,
    expense: float = 4000,
    age: float = 30,
    months: int = 12,
    debts: list | None = None,
    **fire_settings,
) -> dict:
    return {
        "general": {
            "age": age,
            "target_retirement": age + months / 12,
            "annual_income": 0,
            "monthly_take_home": take_home,
            "monthly_expense": expense,
        },
        "investments": {},
        "debts": debts or [],
        "fire_settings": fire_settings,
    }


def build_snapshot(data: dict) -> Snapshot:
    return Snapshot.from_dict(data)
