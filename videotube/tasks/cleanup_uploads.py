import asyncio
import logging
import time
from pathlib import Path

from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


def _remove_stale(directory: Path, cutoff: float) -> int:
    removed = 0
    for path in directory.iterdir():
        # A request may unlink its own staged file between iterdir() and stat()
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        except OSError as exc:
            logger.debug("Skipping %s during upload cleanup: %s", path, exc)
    return removed


async def cleanup_stale_uploads(directory: str, max_age_hours: int) -> int:
    """Remove staged uploads left behind by requests that died mid-upload."""
    temp_dir = Path(directory)
    if not temp_dir.is_dir():
        return 0
    cutoff = time.time() - max_age_hours * 3600
    removed = await run_in_threadpool(_remove_stale, temp_dir, cutoff)
    logger.info("Cleaned up %d stale temporary uploads in %s", removed, temp_dir)
    return removed


async def run_periodic_cleanup(directory: str, max_age_hours: int, interval_seconds: float = 86400):
    """Sweep on start and then every ``interval_seconds`` until cancelled."""
    while True:
        try:
            await cleanup_stale_uploads(directory, max_age_hours)
        except Exception:
            logger.exception("Temporary upload cleanup failed in %s", directory)
        await asyncio.sleep(interval_seconds)

if __name__ == "__main__":
    from videotube.core.config import get_settings
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    asyncio.run(cleanup_stale_uploads(settings.UPLOAD_TEMP_DIR, settings.UPLOAD_TEMP_MAX_AGE_HOURS))
