# src/preload_hints/core/services/report_service.py
import logging
from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from preload_hints.core.plugin import InjectionResult

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["document", "rel", "as", "crossorigin", "href"]


class ReportService:
    """
    Tabulates the hints injected into each document and exports them.
    """

    @staticmethod
    def to_dataframe(results: Iterable[InjectionResult]) -> pd.DataFrame:
        rows = [
            {
                "document": result.output_name,
                "rel": hint.rel,
                "as": hint.as_value,
                "crossorigin": hint.crossorigin,
                "href": hint.href,
            }
            for result in results
            for hint in result.hints
        ]
        return pd.DataFrame(rows, columns=REPORT_COLUMNS)

    def export(self, results: Iterable[InjectionResult], output_file: Union[str, Path]) -> Path:
        """
        Writes the hint table to CSV, or to JSON when the file ends in `.json`.

        Returns:
            Path: The file that was written.
        """
        path = Path(output_file)
        df = self.to_dataframe(results)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix.lower() == ".json":
            df.to_json(path, orient="records", indent=2)
        else:
            df.to_csv(path, index=False)

        logger.info("Exported %d hint row(s) to %s", len(df), path)
        return path
