import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, List

from allure2testit.config import RESULT_FILE_SUFFIX
from allure2testit.core.errors import NotFoundError, NoResultsError

class AllureResultsReader:
    """
    Loads Allure result files from a results directory.

    Records are ordered by their start time and indexed by historyId;
    when two files share a historyId the one that sorts last wins.
    """
    def __init__(self, input_dir: str, allow_empty: bool = False):
        self.input_dir = Path(input_dir)
        self.allow_empty = allow_empty
        self.logger = logging.getLogger("allure2testit.reader")

    def validate(self) -> None:
        """Validates that the results directory exists."""
        if not self.input_dir.exists():
            raise NotFoundError(f"Directory not found: {self.input_dir}")
        if not self.input_dir.is_dir():
            raise NotFoundError(f"Path is not a directory: {self.input_dir}")
        self.logger.debug(f"Directory validated: {self.input_dir}")

    def result_files(self) -> List[Path]:
        """Lists result files directly under the input directory, in enumeration order."""
        return [
            self.input_dir / name
            for name in os.listdir(self.input_dir)
            if name.endswith(RESULT_FILE_SUFFIX)
        ]

    def count_files(self) -> int:
        return len(self.result_files())

    def _load(self, file_path: Path) -> Any:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                record = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error parsing file {file_path}: {e}")
            return None

        if not isinstance(record, dict):
            self.logger.error(f"Error parsing file {file_path}: expected a JSON object")
            return None
        return record

    def read(self) -> Dict[str, Dict[str, Any]]:
        """
        Returns the parsed records keyed by historyId.
        Unparseable files are logged and skipped.
        """
        self.validate()

        records = []
        for file_path in self.result_files():
            record = self._load(file_path)
            if record is None:
                continue
            if not record.get("historyId"):
                self.logger.warning(f"Skipping {file_path}: no historyId")
                continue
            records.append(record)

        if not records and not self.allow_empty:
            raise NoResultsError(f"No Allure result files found in {self.input_dir}")

        records.sort(key=lambda record: record.get("start") or 0)

        results = {}
        for record in records:
            results[record["historyId"]] = record
        return results
