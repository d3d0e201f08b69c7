"""
Unit tests for ReachabilityProber.

subprocess.run is mocked throughout; no test starts a real process.
"""

import subprocess
from unittest.mock import patch

import pytest

from ssh_manage.config import ProbeConfig
from ssh_manage.enums import ReachabilityStatus
from ssh_manage.exceptions import ProbeExecutionError, ProfileNotFoundError
from ssh_manage.services import ReachabilityProber
from tests.fixtures.factories import ServerProfileFactory

RUN = "ssh_manage.services.reachability_prober.subprocess.run"


def completed(output, returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=output)


class TestBuildCommand:
    """Test the argument vector."""

    def test_argv_layout(self, prober, web1):
        assert prober.build_command(web1) == [
            "/usr/local/bin/ssh_check",
            "--name", "web1",
            "--host", "10.0.0.5",
            "--user", "root",
            "--port", "22",
            "--auth", "K",
            "--key", "/keys/a",
        ]

    def test_multi_word_command_prefix(self, store, web1):
        prober = ReachabilityProber(store, config=ProbeConfig(command=["sudo", "/opt/check.sh"]))

        argv = prober.build_command(web1)

        assert argv[:3] == ["sudo", "/opt/check.sh", "--name"]

    def test_shell_metacharacters_stay_one_argument(self, prober, account):
        profile = ServerProfileFactory.create(
            account=account, name="evil", host="h; rm -rf / #", auth_key="$(reboot)"
        )

        argv = prober.build_command(profile)

        assert argv[argv.index("--host") + 1] == "h; rm -rf / #"
        assert argv[argv.index("--auth") + 1] == "$(reboot)"
        assert len(argv) == 13


class TestClassify:
    """Test output classification."""

    def test_marker_anywhere_is_reachable(self, prober):
        assert prober.classify("connection OK\n").reachable
        assert prober.classify("warming up\nOK").reachable

    def test_missing_marker_is_unreachable(self, prober):
        result = prober.classify("refused")

        assert result.status == ReachabilityStatus.UNREACHABLE
        assert result.details == "refused"

    def test_marker_is_case_sensitive(self, prober):
        assert not prober.classify("ok").reachable


class TestProbe:
    """Test probe against a mocked subprocess."""

    def test_reachable(self, prober, web1):
        with patch(RUN, return_value=completed("connection OK\n")) as run:
            result = prober.probe(web1)

        assert result.reachable
        assert result.to_payload() == {"status": "success"}
        run.assert_called_once()

    def test_unreachable_reports_raw_output(self, prober, web1):
        with patch(RUN, return_value=completed("refused", returncode=255)):
            result = prober.probe(web1)

        assert result.status == ReachabilityStatus.UNREACHABLE
        assert result.to_payload() == {"error": "Connection failed", "details": "refused"}

    def test_exit_code_does_not_decide(self, prober, web1):
        with patch(RUN, return_value=completed("OK", returncode=1)):
            assert prober.probe(web1).reachable

    def test_run_arguments(self, prober, web1):
        with patch(RUN, return_value=completed("OK")) as run:
            prober.probe(web1)

        args, kwargs = run.call_args
        assert args[0] == prober.build_command(web1)
        assert kwargs["shell"] is False
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["stdin"] == subprocess.DEVNULL
        assert kwargs["timeout"] == 5

    def test_timeout(self, prober, web1):
        with patch(RUN, side_effect=subprocess.TimeoutExpired(cmd="ssh_check", timeout=5)):
            result = prober.probe(web1)

        assert result.status == ReachabilityStatus.UNREACHABLE
        assert result.details == "TIMEOUT"

    def test_missing_executable(self, prober, web1):
        missing = FileNotFoundError(2, "No such file or directory", "/usr/local/bin/ssh_check")
        with patch(RUN, side_effect=missing):
            with pytest.raises(ProbeExecutionError) as exc_info:
                prober.probe(web1)

        assert exc_info.value.context["service_name"] == "ssh_check"
        assert exc_info.value.to_payload() == {
            "error": "Connection check could not be executed",
            "details": "No such file or directory",
        }

    def test_launch_failure_without_strerror(self, prober, web1):
        with patch(RUN, side_effect=PermissionError("not permitted")):
            with pytest.raises(ProbeExecutionError) as exc_info:
                prober.probe(web1)

        assert exc_info.value.to_payload()["details"] == "not permitted"

    def test_none_output(self, prober, web1):
        with patch(RUN, return_value=completed(None)):
            result = prober.probe(web1)

        assert not result.reachable
        assert result.details == ""


class TestTestConnection:
    """Test test_connection."""

    def test_looks_up_profile(self, prober, web1):
        with patch(RUN, return_value=completed("connection OK")) as run:
            result = prober.test_connection("acct-1", "web1")

        assert result.reachable
        assert "10.0.0.5" in run.call_args.args[0]

    def test_missing_profile_never_runs_check(self, prober, account):
        with patch(RUN) as run:
            with pytest.raises(ProfileNotFoundError):
                prober.test_connection("acct-1", "nope")

        run.assert_not_called()
