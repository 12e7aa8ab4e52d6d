"""History store for persisting finished rehearsal reports."""

import json
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import aiofiles.os

from ..models.interview import Report
from ..utils.exceptions import StorageError
from ..utils.logging import get_logger

_UNSAFE_CHARS = re.compile(r"[^0-9A-Za-z._-]")


class HistoryStore:
    """Abstract interface for report history operations."""

    async def save(self, report: Report) -> None:
        """Persist a finished report."""
        raise NotImplementedError

    async def load_report(self, report_id: str) -> Optional[Report]:
        """Load a report by ID."""
        raise NotImplementedError

    async def list_reports(self) -> List[Report]:
        """List saved reports, newest first."""
        raise NotImplementedError


class FileHistoryStore(HistoryStore):
    """File-based history store using one JSON file per report."""

    def __init__(self, base_path: str = "data", backup_enabled: bool = True, max_backup_count: int = 10):
        """Initialize the file history store.

        Args:
            base_path: Base directory for storing data files.
            backup_enabled: Back up a report file before it is overwritten.
            max_backup_count: Number of backup directories to keep.
        """
        self.base_path = Path(base_path)
        self.reports_path = self.base_path / "reports"
        self.backup_path = self.base_path / "backups"
        self.backup_enabled = backup_enabled
        self.max_backup_count = max_backup_count
        self.logger = get_logger(__name__)

        self._ensure_directories()

    def _ensure_directories(self) -> None:
        try:
            self.reports_path.mkdir(parents=True, exist_ok=True)
            if self.backup_enabled:
                self.backup_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create storage directories: {str(e)}", file_path=str(self.base_path))

    def _report_file(self, report_id: str) -> Path:
        # Report ids embed an ISO timestamp; colons are not portable in file names
        return self.reports_path / f"{_UNSAFE_CHARS.sub('_', report_id)}.json"

    async def save(self, report: Report) -> None:
        """Save a report to file.

        Raises:
            StorageError: If save operation fails.
        """
        report_file = self._report_file(report.id)
        try:
            if report_file.exists() and self.backup_enabled:
                await self._backup_file(report_file)

            async with aiofiles.open(report_file, "w", encoding="utf-8") as f:
                await f.write(report.to_wire())

            self.logger.info(f"Report {report.id} saved successfully")

        except OSError as e:
            self.logger.error(f"Failed to save report {report.id}: {str(e)}")
            raise StorageError(f"Report save failed: {str(e)}", file_path=str(report_file))

    async def load_report(self, report_id: str) -> Optional[Report]:
        """Load a report from file.

        Returns:
            Report if found, None otherwise.

        Raises:
            StorageError: If the file exists but cannot be read or parsed.
        """
        report_file = self._report_file(report_id)
        if not report_file.exists():
            self.logger.warning(f"Report file not found: {report_id}")
            return None
        return await self._read_report(report_file)

    async def list_reports(self) -> List[Report]:
        """List all saved reports, newest first.

        Unreadable files are skipped with a warning so one corrupt file does
        not hide the rest of the history.
        """
        reports = []
        for report_file in sorted(self.reports_path.glob("*.json")):
            try:
                reports.append(await self._read_report(report_file))
            except StorageError as e:
                self.logger.warning(f"Skipping unreadable report {report_file.name}: {e.message}")

        reports.sort(key=lambda r: r.date, reverse=True)
        self.logger.info(f"Found {len(reports)} reports")
        return reports

    async def delete_report(self, report_id: str) -> bool:
        """Delete a report. Returns True if a file was removed."""
        report_file = self._report_file(report_id)
        if not report_file.exists():
            self.logger.warning(f"No report found for {report_id}")
            return False
        try:
            if self.backup_enabled:
                await self._backup_file(report_file)
            await aiofiles.os.remove(report_file)
            self.logger.info(f"Report {report_id} deleted successfully")
            return True
        except OSError as e:
            raise StorageError(f"Report deletion failed: {str(e)}", file_path=str(report_file))

    async def get_storage_stats(self) -> Dict[str, Any]:
        report_files = list(self.reports_path.glob("*.json"))
        return {
            "reports": len(report_files),
            "backups": len(list(self.backup_path.glob("*"))) if self.backup_enabled else 0,
            "total_size_bytes": sum(f.stat().st_size for f in report_files),
            "storage_path": str(self.base_path.absolute()),
        }

    async def _read_report(self, report_file: Path) -> Report:
        try:
            async with aiofiles.open(report_file, "r", encoding="utf-8") as f:
                content = await f.read()
            return Report.model_validate(json.loads(content))
        except Exception as e:
            self.logger.error(f"Failed to load report {report_file.name}: {str(e)}")
            raise StorageError(f"Report load failed: {str(e)}", file_path=str(report_file))

    async def _backup_file(self, file_path: Path) -> None:
        """Copy a file into a timestamped backup directory before it is modified."""
        try:
            backup_dir = self.backup_path / datetime.now().strftime("%Y%m%d_%H%M%S")
            await aiofiles.os.makedirs(backup_dir, exist_ok=True)

            async with aiofiles.open(file_path, "r", encoding="utf-8") as src:
                content = await src.read()
            async with aiofiles.open(backup_dir / file_path.name, "w", encoding="utf-8") as dst:
                await dst.write(content)

            self.logger.debug(f"Created backup of {file_path.name}")
            self._cleanup_old_backups()

        except OSError as e:
            self.logger.warning(f"Failed to create backup of {file_path.name}: {str(e)}")

    def _cleanup_old_backups(self) -> None:
        backup_dirs = sorted(
            [d for d in self.backup_path.iterdir() if d.is_dir()],
            key=lambda x: x.name,
            reverse=True,
        )
        for old_backup in backup_dirs[self.max_backup_count:]:
            shutil.rmtree(old_backup, ignore_errors=True)
            self.logger.info(f"Removed old backup: {old_backup.name}")
