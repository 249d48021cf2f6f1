"""External command execution."""

import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

import structlog

from .environment import Environment
from .exceptions import CommandError

logger = structlog.get_logger(__name__)

CommandArg = Union[str, Path]


class CommandRunner:
    """Runs external programs against an Environment snapshot."""

    def which(self, name: str, env: Environment) -> Optional[Path]:
        """Resolve a command name on the snapshot's PATH."""
        found = shutil.which(name, path=env.path or None)
        return Path(found) if found else None

    def run(
        self,
        args: Sequence[CommandArg],
        env: Environment,
        capture: bool = False,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """Run a command and return its completed process.

        Output is inherited from this process unless ``capture`` is set, so
        anything the command prints reaches the user directly.

        Raises:
            CommandError: the program could not be started or timed out
        """
        argv: List[str] = [str(arg) for arg in args]
        logger.debug("Running command", argv=argv)

        try:
            return subprocess.run(
                argv,
                env=env.as_process_env(),
                input=input_text,
                capture_output=capture,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise CommandError(f"Command not found: {argv[0]}", {"error": str(e)})
        except subprocess.TimeoutExpired:
            raise CommandError(
                f"Command timed out: {' '.join(argv)}", {"timeout": timeout}
            )
        except OSError as e:
            raise CommandError(f"Could not run {argv[0]}: {e}", {"error": str(e)})

    def check(
        self,
        args: Sequence[CommandArg],
        env: Environment,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Run a command and raise CommandError on a non-zero exit."""
        result = self.run(args, env, input_text=input_text, timeout=timeout)
        if result.returncode != 0:
            raise CommandError(
                f"{Path(str(args[0])).name} exited with status {result.returncode}",
                {"argv": [str(a) for a in args], "returncode": result.returncode},
            )
