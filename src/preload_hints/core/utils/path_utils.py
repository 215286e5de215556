# src/preload_hints/core/utils/path_utils.py
import logging
import os
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving package and document paths.
    """

    @staticmethod
    def get_package_root() -> Path:
        """Returns the directory of the installed preload_hints package."""
        return Path(__file__).resolve().parents[2]

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_package_root() / "settings.json"

    @staticmethod
    def common_base(html_paths: Sequence[Path]) -> Path:
        """Returns the deepest directory containing every given document."""
        return Path(os.path.commonpath([str(p.resolve().parent) for p in html_paths]))

    @staticmethod
    def resolve_output_path(html_path: Path, out_dir: Optional[Path] = None, base: Optional[Path] = None) -> Path:
        """
        Returns where a processed document is written: in place, or under
        `out_dir` at its path relative to `base` (just the file name when no
        base is given). Creates the target's directory if needed.
        """
        if out_dir is None:
            return html_path
        relative = html_path.resolve().relative_to(base) if base is not None else Path(html_path.name)
        target = out_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Output for %s goes to %s", html_path, target)
        return target
