"""Subprocess runner for local index search programs."""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from FedSearch.core.errors import EngineError
from FedSearch.utils.log import engine_log


@dataclass(frozen=True, slots=True)
class ProcessRunner:
    """Run one search program and return its stdout lines.

    Attributes:
        engine: Engine kind, used in errors and log prefixes.
        timeout: Seconds before the process is killed; None waits forever.
    """

    engine: str
    timeout: Optional[float] = None

    def run(self, argv: Sequence[str], ok_codes: Sequence[int] = (0,)) -> list[str]:
        """Execute ``argv`` and capture its output.

        Args:
            argv: Program and arguments; no shell is involved.
            ok_codes: Exit statuses that count as success. Several search
                programs exit with 1 when nothing matched.

        Returns:
            Output lines without trailing newlines.

        Raises:
            EngineError: If the program is missing, times out, or exits with
                a status outside ``ok_codes``.
        """
        logger = engine_log(self.engine)
        logger.debug("exec %s", shlex.join(argv))
        try:
            completed = subprocess.run(
                list(argv),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as error:
            raise EngineError(self.engine, f"program not found: {argv[0]}") from error
        except subprocess.TimeoutExpired as error:
            raise EngineError(self.engine, f"{argv[0]} timed out after {self.timeout}s") from error

        if completed.returncode not in ok_codes:
            raise EngineError(
                self.engine,
                f"{argv[0]} failed",
                exit_status=completed.returncode,
                detail=(completed.stderr or "").strip(),
            )
        if completed.stderr:
            logger.debug("stderr: %s", completed.stderr.strip())
        return completed.stdout.splitlines()
