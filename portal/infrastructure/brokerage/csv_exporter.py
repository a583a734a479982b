"""
Adapter: CSV rendering of back-office exports using pandas.
"""

import pandas as pd

from portal.domain.brokerage.ports import ReportExporter


class PandasCsvExporter(ReportExporter):
    """Renders rows through a pandas DataFrame."""

    def to_csv(self, rows: list[dict], columns: list[str]) -> str:
        frame = pd.DataFrame(rows, columns=columns)
        return frame.to_csv(index=False)
