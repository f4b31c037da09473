from __future__ import annotations

import json
from pathlib import Path
from typing import cast

import pytest

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture
def tracking_payload() -> dict[str, object]:
    with (DATA_DIR / "delhivery_rto_in_transit.json").open() as handle:
        return cast(dict[str, object], json.load(handle))
