"""Tests for remote command execution via ssh."""

import inspect
import shutil
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

from sysrun.models import ExecutionOptions, ExecutionResult, FailureKind
from sysrun.services.executor import CommandExecutor
from sysrun.services.remote import (
    RemoteExecutor,
    build_ssh_command,
    scrub_agent_env,
    wrap_nohup,
)


class FakeExecutor:
    """Records calls and returns queued exit codes."""

    def __init__(self, exit_codes: list[int | None]) -> None:
        self.exit_codes = list(exit_codes)
        self.calls: list[tuple[list[str], ExecutionOptions, dict[str, str]]] = []

    def execute(
        self,
        command: str | Sequence[str],
        options: ExecutionOptions | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        options = options or ExecutionOptions()
        self.calls.append((list(command), options, dict(env or {})))
        code = self.exit_codes.pop(0) if self.exit_codes else 0
        return ExecutionResult(
            command=" ".join(command),
            exit_code=code,
            failure=None if code == 0 else FailureKind.EXIT,
            return_rv=options.return_rv,
        )


@pytest.fixture
def sleeps() -> list[float]:
    """Collected retry sleep durations."""
    return []


def make_remote(
    exit_codes: list[int | None], sleeps: list[float], **kwargs: object
) -> tuple[RemoteExecutor, FakeExecutor]:
    fake = FakeExecutor(exit_codes)
    remote = RemoteExecutor(fake, sleep=sleeps.append, **kwargs)  # type: ignore[arg-type]
    return remote, fake


class TestBuildSshCommand:
    """ssh argument assembly."""

    def test_default_invocation(self) -> None:
        """Batch mode, quiet flag, host, then the command as written."""
        argv = build_ssh_command("web1", "uptime", ExecutionOptions())

        assert argv == ["ssh", "-oBatchMode=yes", "-q", "web1", "uptime"]

    def test_host_key_bypass_and_quiet(self) -> None:
        """Host key bypass flags come before exactly one quiet flag."""
        argv = build_ssh_command(
            "web1",
            "uptime",
            ExecutionOptions(no_strict_host_key_checking=True, ssh_verbose=False),
        )

        assert argv.count("-q") == 1
        assert "-v" not in argv
        strict = argv.index("-oStrictHostKeyChecking=no")
        known = argv.index("-oUserKnownHostsFile=/dev/null")
        assert argv.index("-oBatchMode=yes") < strict < known < argv.index("-q")

    def test_host_key_bypass_when_checking_disabled(self) -> None:
        """Disabling host key checking globally adds the bypass flags."""
        argv = build_ssh_command("web1", "uptime", ExecutionOptions(), hostkey_check=False)

        assert "-oStrictHostKeyChecking=no" in argv
        assert "-oUserKnownHostsFile=/dev/null" in argv

    def test_verbose_replaces_quiet(self) -> None:
        """ssh_verbose gives -v and no -q."""
        argv = build_ssh_command("web1", "uptime", ExecutionOptions(ssh_verbose=True))

        assert argv.count("-v") == 1
        assert "-q" not in argv

    def test_extra_ssh_opts_before_host(self) -> None:
        """Caller ssh options are split and placed before the host."""
        argv = build_ssh_command(
            "web1", "uptime", ExecutionOptions(ssh_opts="-p 2222 -oConnectTimeout=5")
        )

        assert argv[-5:] == ["-p", "2222", "-oConnectTimeout=5", "web1", "uptime"]

    def test_remote_command_is_last_argument_unchanged(self) -> None:
        """The remote login shell receives the command line as written."""
        command = "[[ -d /etc ]] && echo 'a b' | wc -c"

        argv = build_ssh_command("web1", command, ExecutionOptions())

        assert argv[-2:] == ["web1", command]
        assert not any(arg.startswith("sh -c") for arg in argv)

    def test_custom_ssh_binary(self) -> None:
        """The configured ssh client is used."""
        argv = build_ssh_command(
            "web1", "true", ExecutionOptions(), ssh_binary="/usr/local/bin/ssh"
        )

        assert argv[0] == "/usr/local/bin/ssh"

    def test_invalid_ssh_opts(self) -> None:
        """Unbalanced quotes in ssh_opts are rejected."""
        with pytest.raises(ValueError):
            build_ssh_command("web1", "true", ExecutionOptions(ssh_opts="-o 'broken"))

    def test_nohup_wraps_command(self) -> None:
        """nohup detaches the remote command."""
        argv = build_ssh_command("web1", "sync", ExecutionOptions(nohup=True))

        assert argv[-1] == "nohup sync >/dev/null 2>/dev/null </dev/null &"


class TestWrapNohup:
    """Background wrapping of remote commands."""

    def test_adds_redirections(self) -> None:
        assert wrap_nohup("sync") == "nohup sync >/dev/null 2>/dev/null </dev/null &"

    def test_keeps_existing_output_redirect(self) -> None:
        assert wrap_nohup("sync >/tmp/log") == "nohup sync >/tmp/log </dev/null &"

    def test_keeps_existing_input_redirect(self) -> None:
        assert wrap_nohup("cat </tmp/in >/tmp/out") == "nohup cat </tmp/in >/tmp/out &"


class TestScrubAgentEnv:
    """Agent variables are removed from the child environment only."""

    BASE = {"PATH": "/usr/bin", "SSH_AUTH_SOCK": "/tmp/agent.sock", "SSH_AGENT_PID": "99"}

    def test_removes_agent_vars(self) -> None:
        env = scrub_agent_env(self.BASE)

        assert env == {"PATH": "/usr/bin"}
        assert self.BASE["SSH_AUTH_SOCK"] == "/tmp/agent.sock"

    def test_keeps_agent_vars_when_allowed(self) -> None:
        env = scrub_agent_env(self.BASE, keep_agent=True)

        assert env == self.BASE
        assert env is not self.BASE

    def test_process_environment_untouched(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """os.environ keeps the agent socket."""
        import os

        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")

        env = scrub_agent_env()

        assert "SSH_AUTH_SOCK" not in env
        assert os.environ["SSH_AUTH_SOCK"] == "/tmp/agent.sock"


class TestRemoteExecutor:
    """Delegation, agent handling and retry."""

    def test_delegates_argv_and_options(self, sleeps: list[float]) -> None:
        remote, fake = make_remote([0], sleeps)
        options = ExecutionOptions(timeout=5, capture_output=True)

        result = remote.execute("web1", "uptime", options)

        assert result.ok
        argv, passed, _ = fake.calls[0]
        assert argv[0] == "ssh"
        assert "web1" in argv
        assert passed is options

    def test_agent_scrubbed_by_default(
        self, sleeps: list[float], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        remote, fake = make_remote([0], sleeps, ssh_agent=True)

        remote.execute("web1", "true")

        assert "SSH_AUTH_SOCK" not in fake.calls[0][2]

    def test_agent_requires_executor_permission(
        self, sleeps: list[float], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """use_ssh_agent alone is not enough."""
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        remote, fake = make_remote([0], sleeps, ssh_agent=False)

        remote.execute("web1", "true", ExecutionOptions(use_ssh_agent=True))

        assert "SSH_AUTH_SOCK" not in fake.calls[0][2]

    def test_agent_kept_when_allowed_and_requested(
        self, sleeps: list[float], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SSH_AUTH_SOCK", "/tmp/agent.sock")
        remote, fake = make_remote([0], sleeps, ssh_agent=True)

        remote.execute("web1", "true", ExecutionOptions(use_ssh_agent=True))

        assert fake.calls[0][2]["SSH_AUTH_SOCK"] == "/tmp/agent.sock"

    def test_hostkey_check_disabled_on_executor(self, sleeps: list[float]) -> None:
        remote, fake = make_remote([0], sleeps, ssh_hostkey_check=False)

        remote.execute("web1", "true")

        assert "-oStrictHostKeyChecking=no" in fake.calls[0][0]

    def test_failure_without_retry(self, sleeps: list[float]) -> None:
        remote, fake = make_remote([255], sleeps)

        result = remote.execute("web1", "true")

        assert not result.ok
        assert result.value is None
        assert len(fake.calls) == 1
        assert sleeps == []

    def test_failure_without_retry_return_rv(self, sleeps: list[float]) -> None:
        remote, _ = make_remote([255], sleeps)

        result = remote.execute("web1", "true", ExecutionOptions(return_rv=True))

        assert result.value == 255

    def test_retry_until_success(self, sleeps: list[float]) -> None:
        """Fail, fail, succeed with retry=3 stops after 3 attempts."""
        remote, fake = make_remote([1, 1, 0, 0], sleeps)

        result = remote.execute("web1", "true", ExecutionOptions(retry=3, sleep=0))

        assert result.ok
        assert result.value is True
        assert result.attempts == 3
        assert len(fake.calls) == 3
        assert sleeps == [0, 0]

    def test_retry_reuses_same_argv(self, sleeps: list[float]) -> None:
        remote, fake = make_remote([1, 0], sleeps)

        remote.execute(
            "web1", "true", ExecutionOptions(retry=1, sleep=0, no_strict_host_key_checking=True)
        )

        assert fake.calls[0][0] == fake.calls[1][0]

    def test_retry_exhausted_returns_last_attempt(self, sleeps: list[float]) -> None:
        remote, fake = make_remote([1, 2, 3], sleeps)

        result = remote.execute(
            "web1", "true", ExecutionOptions(retry=2, sleep=0, return_rv=True)
        )

        assert not result.ok
        assert result.value == 3
        assert result.attempts == 3
        assert len(fake.calls) == 3

    def test_retry_uses_default_sleep(self, sleeps: list[float]) -> None:
        remote, _ = make_remote([1, 1], sleeps, retry_sleep=7.5)

        remote.execute("web1", "true", ExecutionOptions(retry=1))

        assert sleeps == [7.5]

    def test_success_skips_retry(self, sleeps: list[float]) -> None:
        remote, fake = make_remote([0], sleeps)

        result = remote.execute("web1", "true", ExecutionOptions(retry=5))

        assert result.attempts == 1
        assert len(fake.calls) == 1
        assert sleeps == []

    def test_empty_host_rejected(self, sleeps: list[float]) -> None:
        remote, _ = make_remote([0], sleeps)

        with pytest.raises(ValueError):
            remote.execute("", "true")


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not installed")
class TestLoginShell:
    """The remote login shell runs the command itself."""

    @pytest.fixture
    def fake_ssh(self, tmp_path: Path) -> Path:
        """ssh stand-in that evaluates its last argument with bash."""
        script = tmp_path / "ssh"
        script.write_text('#!/bin/sh\nfor last; do :; done\nexec bash -c "$last"\n')
        script.chmod(0o755)
        return script

    def test_bash_features_available(self, fake_ssh: Path) -> None:
        remote = RemoteExecutor(CommandExecutor(), ssh_binary=str(fake_ssh))

        result = remote.execute(
            "web1",
            'echo "$BASH_VERSION"',
            ExecutionOptions(capture_output=True, chomp=True),
        )

        assert result.ok
        assert result.output

    def test_bash_test_syntax(self, fake_ssh: Path) -> None:
        remote = RemoteExecutor(CommandExecutor(), ssh_binary=str(fake_ssh))

        result = remote.execute(
            "web1", "[[ -n x ]] && echo yes", ExecutionOptions(capture_output=True)
        )

        assert result.output == "yes\n"


def test_sleep_parameter_is_typed() -> None:
    """The injectable sleep takes seconds and returns nothing."""
    param = inspect.signature(RemoteExecutor.__init__).parameters["sleep"]

    assert param.annotation == Callable[[float], None]
    assert param.default is time.sleep
