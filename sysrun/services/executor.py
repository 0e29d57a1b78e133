"""Local command execution with timeout enforcement and output redirection."""

import logging
import os
import shlex
import signal
import subprocess
import tempfile
import time
from collections.abc import Mapping, Sequence
from contextlib import ExitStack
from typing import IO, Any

from sysrun.models import (
    TIMEOUT_EXIT_CODE,
    ExecutionOptions,
    ExecutionResult,
    FailureKind,
)
from sysrun.services.output import (
    Redirection,
    StreamTarget,
    decide_redirection,
    needs_temp_capture,
)
from sysrun.utils.transcript import append_text, slurp, transcript_line

logger = logging.getLogger(__name__)

Command = str | Sequence[str]


class CommandExecutor:
    """Runs one command as a child process.

    A string command is run by ``/bin/sh``; a sequence is executed directly.
    Failures never raise: they are reported through the returned
    ``ExecutionResult``.
    """

    def __init__(self, terminate_grace: float = 2.0) -> None:
        """Initialize the executor.

        Args:
            terminate_grace: Seconds to wait after SIGTERM before SIGKILL
                when a command times out.
        """
        self.terminate_grace = terminate_grace

    def execute(
        self,
        command: Command,
        options: ExecutionOptions | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        """Run a command and normalize its exit status.

        Args:
            command: Shell command line or argument vector
            options: Execution options (defaults discard all output)
            env: Complete environment for the child, or None to inherit

        Returns:
            ExecutionResult; ``exit_code`` 0 is the only success
        """
        options = options or ExecutionOptions()
        command_text = _format_command(command)

        with ExitStack() as stack:
            temp_dir = None
            if needs_temp_capture(options):
                temp_dir = stack.enter_context(
                    tempfile.TemporaryDirectory(prefix="sysrun-")
                )
            redirection = decide_redirection(options, temp_dir)

            msg = f"CMD: {command_text}{redirection.describe()}"
            logger.debug("%s", msg)

            started_at = time.perf_counter()
            try:
                if options.log_file:
                    append_text(options.log_file, transcript_line(msg))
                if options.dry_run:
                    logger.info("Dry run, not executing: %s", command_text)
                    result = ExecutionResult(
                        command=command_text,
                        exit_code=0,
                        dry_run=True,
                        return_rv=options.return_rv,
                    )
                else:
                    result = self._spawn(
                        command, command_text, redirection, options, env
                    )
                if options.log_file:
                    append_text(options.log_file, _finish_line(result))
            except OSError as e:
                # Log or output file could not be opened or written
                logger.warning("Could not redirect output of %s: %s", command_text, e)
                result = ExecutionResult(
                    command=command_text,
                    exit_code=None,
                    failure=FailureKind.SPAWN,
                    return_rv=options.return_rv,
                )
            result.duration = time.perf_counter() - started_at

            if result.ok:
                logger.debug("Command completed successfully")
                if redirection.capture and not result.dry_run:
                    result.output = slurp(redirection.path, chomp=options.chomp)  # type: ignore[arg-type]
            else:
                logger.warning(
                    "Could not execute %s without error. Exit Code: %s",
                    command_text,
                    "" if result.exit_code is None else result.exit_code,
                )

        return result

    def _spawn(
        self,
        command: Command,
        command_text: str,
        redirection: Redirection,
        options: ExecutionOptions,
        env: Mapping[str, str] | None,
    ) -> ExecutionResult:
        """Start the process and wait for it, enforcing the timeout."""
        shell = isinstance(command, str)
        argv: Any = command if shell else [str(part) for part in command]
        use_process_group = options.timeout > 0 and os.name != "nt"

        with ExitStack() as stack:
            stdout = _open_target(stack, redirection.stdout, redirection)
            if redirection.stderr is StreamTarget.STDOUT:
                stderr: Any = subprocess.STDOUT
            else:
                stderr = _open_target(stack, redirection.stderr, redirection)

            try:
                process = subprocess.Popen(
                    argv,
                    shell=shell,
                    stdout=stdout,
                    stderr=stderr,
                    env=dict(env) if env is not None else None,
                    start_new_session=use_process_group,
                )
            except OSError as e:
                logger.warning("Could not start %s: %s", command_text, e)
                return ExecutionResult(
                    command=command_text,
                    exit_code=None,
                    failure=FailureKind.SPAWN,
                    return_rv=options.return_rv,
                )

            try:
                returncode = process.wait(timeout=options.timeout or None)
            except subprocess.TimeoutExpired:
                self._terminate(process, use_process_group)
                logger.warning("CMD timed out after %s", options.timeout)
                return ExecutionResult(
                    command=command_text,
                    exit_code=TIMEOUT_EXIT_CODE,
                    failure=FailureKind.TIMEOUT,
                    timed_out=True,
                    return_rv=options.return_rv,
                )
            except BaseException:
                self._terminate(process, use_process_group)
                raise

        return ExecutionResult(
            command=command_text,
            exit_code=returncode,
            failure=None if returncode == 0 else FailureKind.EXIT,
            return_rv=options.return_rv,
        )

    def _terminate(self, process: subprocess.Popen, use_process_group: bool) -> None:
        """Stop a child (and its process group): SIGTERM, grace, then SIGKILL."""

        def _send(sig: int) -> None:
            try:
                if use_process_group:
                    os.killpg(process.pid, sig)
                elif process.poll() is None:
                    process.send_signal(sig)
            except (ProcessLookupError, PermissionError) as e:
                logger.debug("Signal %d to %d not delivered: %s", sig, process.pid, e)

        _send(signal.SIGTERM)
        try:
            process.wait(timeout=self.terminate_grace)
            if not use_process_group:
                return
        except subprocess.TimeoutExpired:
            logger.debug("Process %d ignored SIGTERM, killing", process.pid)

        # Leftover members of the group are killed even if the leader exited.
        _send(signal.SIGKILL if os.name != "nt" else signal.SIGTERM)
        process.wait()


def _open_target(
    stack: ExitStack, target: StreamTarget, redirection: Redirection
) -> IO[bytes] | int | None:
    if target is StreamTarget.FILE:
        mode = "ab" if redirection.append else "wb"
        return stack.enter_context(open(redirection.path, mode))  # type: ignore[arg-type]
    if target is StreamTarget.DISCARD:
        return subprocess.DEVNULL
    return None


def _format_command(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join([str(part) for part in command])


def _finish_line(result: ExecutionResult) -> str:
    if result.dry_run:
        return "CMD finished in DryRun mode. Faking exit code: 0.\n"
    return transcript_line(f"CMD finished. Exit Code: {result.exit_code}")
