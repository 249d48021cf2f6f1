"""Startup logo."""

import structlog

from ..config.settings import InstallerSettings
from ..installation.commands import CommandRunner
from ..installation.downloader import Downloader
from ..installation.environment import Environment
from ..installation.exceptions import CommandError, DownloadError

logger = structlog.get_logger(__name__)


async def show_logo(
    settings: InstallerSettings,
    env: Environment,
    downloader: Downloader,
    runner: CommandRunner,
) -> bool:
    """Fetch the logo script and run it with bash. Failures are only logged.

    Returns:
        True if the logo was shown
    """
    try:
        script = await downloader.fetch_text(settings.logo_url)
        result = runner.run(["bash"], env, input_text=script, timeout=30)
    except (DownloadError, CommandError) as e:
        logger.info("Logo not shown", error=e.message)
        return False

    return result.returncode == 0
