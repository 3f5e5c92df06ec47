"""ZIP utility for extracting package archives."""
import shutil
import zipfile
from pathlib import Path
from typing import Callable, List, Optional

from .hash_constants import BLOCK_SIZE


class ZipUtil:
    """Utility class for expanding package archives onto disk."""

    @staticmethod
    def extract_zip(
        zip_path: Path,
        destination: Path,
        include: Optional[Callable[[str], bool]] = None
    ) -> List[str]:
        """
        Extracts every file entry of zip_path below destination.

        Entries whose resolved target would land outside destination are
        rejected with ValueError before anything is written for them.

        Args:
            zip_path: Path of the archive to expand
            destination: Directory receiving the files (created if missing)
            include: Optional predicate on the entry name; entries it rejects are skipped

        Returns:
            Relative POSIX paths of the extracted files, in archive order
        """
        destination.mkdir(parents=True, exist_ok=True)
        root = destination.resolve()
        extracted = []

        with zipfile.ZipFile(zip_path, "r") as zf:
            for info in zf.infolist():
                name = info.filename.replace("\\", "/")
                if name.endswith("/"):
                    continue
                if include is not None and not include(name):
                    continue

                target = (root / name).resolve()
                if root != target and root not in target.parents:
                    raise ValueError(f"Archive entry escapes the destination: {info.filename}")

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst, BLOCK_SIZE)
                extracted.append(name)

        return extracted
