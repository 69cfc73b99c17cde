"""
CSV export helpers shared by the admin downloads

Author: TM3
Date: 2025-10-17
"""
import io
from typing import List, Sequence, Any

import pandas as pd


def to_csv_bytes(columns: Sequence[str], rows: List[Sequence[Any]]) -> io.BytesIO:
    """
    Render rows under a fixed header as UTF-8 CSV

    Returns a rewound buffer ready for StreamingResponse. An empty row list
    still produces the header line.
    """
    df = pd.DataFrame(list(rows), columns=list(columns))
    buffer = io.BytesIO()
    buffer.write(df.to_csv(index=False).encode("utf-8"))
    buffer.seek(0)
    return buffer
