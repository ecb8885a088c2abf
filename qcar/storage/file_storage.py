"""Local file storage for generated claim reports and their photos."""

import re
import shutil
import logging
from typing import List, Tuple
from pathlib import Path

from ..models.report import RenderedReport
from ..utils.errors import StorageError

logger = logging.getLogger(__name__)

CLAIM_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class FileStorage:
    """
    Local file storage manager for claim reports and scene photos.

    Layout:
        reports_dir/<claim_id>/<report filename>
        photos_dir/<claim_id>/<position>_<filename>
    """

    def __init__(
        self,
        reports_dir: str = "data/reports",
        photos_dir: str = "data/photos"
    ):
        """
        Initialize FileStorage.

        Args:
            reports_dir: Directory for generated PDF reports
            photos_dir: Directory for uploaded scene photos
        """
        self.reports_dir = Path(reports_dir)
        self.photos_dir = Path(photos_dir)

        self._ensure_directories()

        logger.info(
            f"Initialized FileStorage: "
            f"reports_dir={self.reports_dir}, "
            f"photos_dir={self.photos_dir}"
        )

    def _ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for directory in [self.reports_dir, self.photos_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def check_claim_id(self, claim_id: str) -> str:
        """
        Ensure a claim id is safe to use as a directory name.

        Raises:
            StorageError: If the id is empty or contains path characters
        """
        if not isinstance(claim_id, str) or not CLAIM_ID_PATTERN.fullmatch(claim_id):
            raise StorageError.invalid_claim_id(str(claim_id))
        return claim_id

    def _claim_dir(self, base: Path, claim_id: str) -> Path:
        return base / self.check_claim_id(claim_id)

    def _write(self, path: Path, content: bytes) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'wb') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write {path}: {str(e)}")
            raise StorageError.write_failed(str(path), e) from e

        logger.info(f"Saved {path} ({len(content)} bytes)")
        return path

    # Reports

    def save_report(self, report: RenderedReport) -> Path:
        """
        Save a rendered report under its claim id.

        Args:
            report: Report returned by the composer

        Returns:
            Path where the PDF was saved

        Raises:
            StorageError: If the file cannot be written
        """
        return self._write(self._claim_dir(self.reports_dir, report.claim_id) / report.filename, report.content)

    def load_report(self, claim_id: str) -> Tuple[str, bytes]:
        """
        Load the most recent report stored for a claim.

        Returns:
            Tuple of (filename, PDF bytes)

        Raises:
            StorageError: If no report is stored for the claim
        """
        claim_dir = self._claim_dir(self.reports_dir, claim_id)
        candidates = sorted(claim_dir.glob("*.pdf")) if claim_dir.is_dir() else []
        if not candidates:
            raise StorageError.report_not_found(claim_id)

        path = candidates[-1]
        with open(path, 'rb') as f:
            content = f.read()

        logger.debug(f"Loaded report: {path} ({len(content)} bytes)")
        return path.name, content

    def list_reports(self) -> List[str]:
        """
        List claim ids that have a stored report.

        Returns:
            Sorted list of claim ids
        """
        if not self.reports_dir.exists():
            return []

        claim_ids = sorted(
            d.name for d in self.reports_dir.iterdir()
            if d.is_dir() and any(d.glob("*.pdf"))
        )
        logger.info(f"Found {len(claim_ids)} stored reports")
        return claim_ids

    # Photos

    def save_photo(
        self,
        claim_id: str,
        position: int,
        filename: str,
        content: bytes
    ) -> Path:
        """
        Save an uploaded photo for a claim.

        The position prefix keeps the capture order on disk.

        Args:
            claim_id: Claim identifier
            position: 1-based photo position
            filename: Original upload name
            content: Image bytes

        Returns:
            Path where the photo was saved
        """
        safe_name = Path(filename).name or "photo.jpg"
        return self._write(self._claim_dir(self.photos_dir, claim_id) / f"{position}_{safe_name}", content)

    def list_photos(self, claim_id: str) -> List[Tuple[str, Path]]:
        """List (filename, path) pairs stored for a claim, in position order."""
        claim_dir = self._claim_dir(self.photos_dir, claim_id)
        if not claim_dir.exists():
            return []

        def position_of(path: Path) -> int:
            prefix = path.name.split("_", 1)[0]
            return int(prefix) if prefix.isdigit() else 0

        files = sorted((p for p in claim_dir.iterdir() if p.is_file()), key=position_of)
        return [(p.name, p) for p in files]

    # Cleanup

    def delete_claim(self, claim_id: str) -> bool:
        """
        Delete the stored report and photos of a claim.

        Returns:
            True if anything was deleted, False if nothing was stored
        """
        deleted = False
        for claim_dir in [self._claim_dir(self.reports_dir, claim_id), self._claim_dir(self.photos_dir, claim_id)]:
            if not claim_dir.exists():
                continue
            try:
                shutil.rmtree(claim_dir)
                deleted = True
            except OSError as e:
                logger.error(f"Failed to delete {claim_dir}: {str(e)}")
                return False

        if deleted:
            logger.info(f"Deleted stored files for claim {claim_id}")
        else:
            logger.warning(f"No stored files for claim {claim_id}")
        return deleted
