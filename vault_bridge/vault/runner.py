"""Subprocess execution for the vault command line tool."""

import os
import subprocess
from typing import Optional, Sequence

from ..utils.logging import get_logger
from .exceptions import MalformedOutputError, ProcessError, SecretDeliveryError, ToolNotFoundError

logger = get_logger(__name__)

# Fits in an empty pipe on every platform, so the write cannot block
# before the output is drained.
MAX_SECRET_BYTES = 4096


def isolate_json(output: str) -> str:
    """
    Strip interactive prompt text printed before the JSON payload.

    Args:
        output: Combined tool output

    Returns:
        Output starting at the first ``{``, trailing whitespace removed

    Raises:
        MalformedOutputError: If the output contains no ``{``
    """
    start = output.find("{")
    if start < 0:
        raise MalformedOutputError(
            f"could not isolate JSON from output:\n{output}",
            raw=output,
            processed=output,
        )
    return output[start:].rstrip()


class ProcessRunner:
    """
    Runs vault tool commands and classifies their exit codes.

    The tool speaks UTF-8 regardless of the locale; undecodable output
    bytes are replaced rather than raised.

    stdout and stderr are captured as one stream. Exit code 0, or the
    caller's acceptable exit code, returns the output; anything else
    raises ProcessError.
    """

    def __init__(self, timeout: Optional[float] = None, env: Optional[dict[str, str]] = None):
        """
        Args:
            timeout: Seconds before an invocation is killed (None or 0 = no limit)
            env: Environment overrides for the child process
        """
        self.timeout = timeout or None
        self.env = dict(env or {})

    def _child_env(self) -> Optional[dict[str, str]]:
        if not self.env:
            return None
        merged = dict(os.environ)
        merged.update(self.env)
        return merged

    def _spawn(self, args: Sequence[str], with_stdin: bool) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                list(args),
                stdin=subprocess.PIPE if with_stdin else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                env=self._child_env(),
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(args[0]) from e
        except PermissionError as e:
            raise ToolNotFoundError(args[0], str(e)) from e

    def _drain(self, process: subprocess.Popen, friendly_name: str) -> str:
        try:
            output, _ = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            process.kill()
            output, _ = process.communicate()
            raise ProcessError(
                friendly_name,
                output or "",
                process.returncode,
                message=f"cannot {friendly_name}: timed out after {self.timeout}s",
            ) from e
        return output or ""

    def _classify(
        self,
        process: subprocess.Popen,
        friendly_name: str,
        output: str,
        acceptable_exit_code: int,
    ) -> str:
        code = process.returncode
        if code not in (0, acceptable_exit_code):
            raise ProcessError(friendly_name, output, code)
        return output

    def run(
        self,
        args: Sequence[str],
        friendly_name: str,
        acceptable_exit_code: int = 0,
    ) -> str:
        """
        Run a command and return its combined output.

        Args:
            args: Command and arguments
            friendly_name: Short name used in errors and logs (e.g. "login --check")
            acceptable_exit_code: A non-zero code the caller treats as a valid "no"

        Returns:
            Combined stdout and stderr

        Raises:
            ToolNotFoundError: If the binary cannot be executed
            ProcessError: On an unexpected exit code or timeout
        """
        logger.debug("Running %s", friendly_name)
        process = self._spawn(args, with_stdin=False)
        output = self._drain(process, friendly_name)
        logger.debug("%s exited with %s", friendly_name, process.returncode)
        return self._classify(process, friendly_name, output, acceptable_exit_code)

    def run_with_secret(self, args: Sequence[str], friendly_name: str, secret: str) -> str:
        """
        Run a command that reads the master password from stdin.

        The secret and a newline are written before the output is drained.
        The JSON payload is then isolated from any prompt text.

        Raises:
            SecretDeliveryError: If the secret is too large or not encodable
                (checked before the tool starts), or cannot be written and
                the command fails
            ProcessError: On a non-zero exit code or timeout
            MalformedOutputError: If no JSON payload can be isolated
        """
        payload = f"{secret}\n"
        try:
            size = len(payload.encode("utf-8"))
        except UnicodeEncodeError as e:
            raise SecretDeliveryError(friendly_name, "secret is not valid UTF-8 text") from e
        if size > MAX_SECRET_BYTES:
            raise SecretDeliveryError(friendly_name, f"secret exceeds {MAX_SECRET_BYTES} bytes")

        logger.debug("Running %s with password on stdin", friendly_name)
        process = self._spawn(args, with_stdin=True)

        write_error: Optional[OSError] = None
        try:
            process.stdin.write(payload)
            process.stdin.flush()
        except OSError as e:
            # The tool may exit without reading stdin (e.g. a valid session).
            write_error = e

        output = self._drain(process, friendly_name)
        logger.debug("%s exited with %s", friendly_name, process.returncode)

        if write_error is not None:
            if process.returncode != 0:
                raise SecretDeliveryError(
                    friendly_name,
                    str(write_error),
                    output=output,
                    exit_code=process.returncode,
                ) from write_error
            logger.debug("%s exited before reading the password", friendly_name)

        output = self._classify(process, friendly_name, output, 0)
        return isolate_json(output)
