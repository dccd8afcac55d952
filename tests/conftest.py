from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pandas as pd
import pytest

from sheetcharts.values import Row, normalize_row
from sheetcharts.workbook import WorkbookCache


SALES_ROWS = [
    {"region": "east", "sales": "10"},
    {"region": "east", "sales": "20"},
    {"region": "west", "sales": "5"},
]


def make_rows(raw_rows: List[Dict[str, object]]) -> List[Row]:
    return [normalize_row(r) for r in raw_rows]


@pytest.fixture()
def sales_rows() -> List[Row]:
    return make_rows(SALES_ROWS)


@pytest.fixture()
def cache() -> WorkbookCache:
    return WorkbookCache()


@pytest.fixture()
def sales_csv(tmp_path: Path) -> Path:
    path = tmp_path / "sales.csv"
    path.write_text("region,sales,note\neast,10,N/A\neast,20,\nwest,5,\"late, again\"\n", encoding="utf-8")
    return path


@pytest.fixture()
def orders_xlsx(tmp_path: Path) -> Path:
    path = tmp_path / "orders.xlsx"
    orders = pd.DataFrame(
        {
            "day": pd.to_datetime(["2024-01-02", "2024-01-01", "2024-01-02"]),
            "units": [3, 4, 5],
            "channel": ["web", "store", "web"],
        }
    )
    regions = pd.DataFrame({"region": ["north", "south"], "target": [100, 200]})
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        orders.to_excel(writer, sheet_name="Orders", index=False)
        regions.to_excel(writer, sheet_name="Regions", index=False)
    return path
