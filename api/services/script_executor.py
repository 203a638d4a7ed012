"""
Runs generated AppleScript through osascript.

The script is written to osascript's stdin ("osascript -"), so it never
passes through a shell or a command line and needs no quoting beyond the
AppleScript literal escaping done by the builders.

Anything with an execute(script) -> str method can stand in for
OsascriptExecutor; tests use a fake that returns canned text.
"""
import logging
import subprocess
import time
from typing import Optional, Protocol, Union

from api.services.applescript import AppleScript
from api.services.errors import ScriptExecutionError, ScriptTimeoutError
from config.settings import settings

logger = logging.getLogger(__name__)

ScriptSource = Union[str, AppleScript]


class ScriptRunner(Protocol):
    """Capability to run one AppleScript and return its output."""

    def execute(self, script: ScriptSource) -> str:
        ...


def _source_of(script: ScriptSource) -> tuple[str, str]:
    if isinstance(script, AppleScript):
        return script.kind, script.render()
    return "raw", script


class OsascriptExecutor:
    """
    Synchronous osascript runner.

    One process per call, no retries. Output has trailing whitespace
    stripped. Non-zero exit, a missing binary, or a timeout all raise
    ScriptExecutionError (ScriptTimeoutError for the latter).
    """

    def __init__(self, binary: Optional[str] = None, timeout: Optional[float] = None):
        self.binary = binary or settings.osascript_path
        self.timeout = timeout if timeout is not None else settings.script_timeout_seconds

    def execute(self, script: ScriptSource) -> str:
        kind, source = _source_of(script)
        cmd = [self.binary, "-"]
        started = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                input=source,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr or ""
            if isinstance(stderr, bytes):
                stderr = stderr.decode("utf-8", errors="replace")
            logger.warning(f"osascript timed out after {self.timeout:g}s ({kind})")
            raise ScriptTimeoutError(self.timeout, stderr=stderr) from e
        except OSError as e:
            # Binary missing or not executable
            logger.warning(f"Could not start {self.binary}: {e}")
            raise ScriptExecutionError(f"Could not start {self.binary}: {e}") from e

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.debug(f"osascript {kind} finished in {elapsed_ms:.0f}ms (exit {result.returncode})")

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.warning(f"AppleScript {kind} failed (exit {result.returncode}): {stderr}")
            raise ScriptExecutionError(
                f"AppleScript execution failed: {stderr or 'exit code ' + str(result.returncode)}",
                returncode=result.returncode,
                stderr=stderr,
            )

        return (result.stdout or "").rstrip()
