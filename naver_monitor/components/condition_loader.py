"""
Condition table loading from spreadsheet files.

The condition sheet has the condition expression in column A and the tag in
column B. The first sheet is used unless a sheet name is configured.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from openpyxl import load_workbook

from ..models.condition import ConditionTable
from ..utils.error_handling import FileLoadError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".xlsx",)


class ConditionTableLoader:
    """Loads a complete condition table from an ``.xlsx`` spreadsheet."""

    def __init__(self, sheet: Optional[str] = None):
        """
        Initialize the loader.

        Args:
            sheet: Worksheet name to read. If None, the first sheet is used.
        """
        self.sheet = sheet
        self.path: Optional[Path] = None
        self._last_modified: Optional[float] = None

    def load(self, path: str) -> ConditionTable:
        """
        Load a condition table.

        Args:
            path: Spreadsheet path

        Returns:
            A new ConditionTable replacing any previous one.

        Raises:
            FileLoadError: If the file is missing, of the wrong type, or unreadable
        """
        file_path = Path(path)

        if file_path.suffix.lower() not in ALLOWED_EXTENSIONS:
            raise FileLoadError(
                f"Unsupported condition file type '{file_path.suffix}'; "
                f"expected one of {', '.join(ALLOWED_EXTENSIONS)}"
            )

        if not file_path.is_file():
            raise FileLoadError(f"Condition file not found: {file_path}")

        try:
            modified = os.path.getmtime(file_path)
            workbook = load_workbook(file_path, read_only=True, data_only=True)
        except Exception as e:
            raise FileLoadError(f"Could not open condition file {file_path}: {e}") from e

        try:
            if self.sheet is not None:
                if self.sheet not in workbook.sheetnames:
                    raise FileLoadError(
                        f"Sheet '{self.sheet}' not found in {file_path.name}"
                    )
                worksheet = workbook[self.sheet]
            else:
                worksheet = workbook.worksheets[0]

            table = ConditionTable.from_rows(worksheet.iter_rows(values_only=True))
        except FileLoadError:
            raise
        except Exception as e:
            raise FileLoadError(f"Could not read condition file {file_path}: {e}") from e
        finally:
            workbook.close()

        self.path = file_path
        self._last_modified = modified

        logger.info(f"Loaded {len(table)} conditions from {file_path}")
        return table

    def has_changed(self) -> bool:
        """Check whether the last loaded file was modified since loading."""
        if self.path is None or not self.path.exists():
            return False

        current_modified = os.path.getmtime(self.path)
        return self._last_modified is None or current_modified > self._last_modified

    def reload_if_changed(self) -> Optional[ConditionTable]:
        """
        Reload the last loaded file if it has been modified.

        Returns:
            The new table, or None if unchanged or the reload failed (the
            caller keeps its current table in both cases).
        """
        if not self.has_changed():
            return None

        try:
            return self.load(str(self.path))
        except FileLoadError as e:
            logger.error(f"Condition file reload failed, keeping current table: {e}")
            # Wait for the next save instead of retrying the same broken file
            if self.path.exists():
                self._last_modified = os.path.getmtime(self.path)
            return None
