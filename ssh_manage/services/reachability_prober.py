"""
Reachability prober: runs the external SSH check for a stored profile.

The check is started with an argument vector and ``shell=False``; profile
fields are passed as discrete values and are never interpreted by a shell.
"""

import subprocess
from typing import List, Optional

from ..config import ProbeConfig
from ..constants import PROBE_TIMEOUT_DETAIL
from ..context.operation_context import operation
from ..db.db_server_models import ServerProfile
from ..enums import ReachabilityStatus
from ..exceptions import ProbeExecutionError, ProfileNotFoundError
from ..schemas.server_schemas import ProbeResult
from ..utils.logger import get_logger
from .credential_store import CredentialStore


class ReachabilityProber:
    """Builds, runs and classifies the external connection check."""

    def __init__(self, store: CredentialStore, config: Optional[ProbeConfig] = None):
        self.store = store
        self.config = config or ProbeConfig()
        self.logger = get_logger()

    def build_command(self, profile: ServerProfile) -> List[str]:
        """Argument vector for the check; one list item per value."""
        return [
            *self.config.command,
            "--name",
            str(profile.name),
            "--host",
            str(profile.host),
            "--user",
            str(profile.username),
            "--port",
            str(profile.port),
            "--auth",
            str(profile.auth_key),
            "--key",
            str(profile.ssh_key),
        ]

    def classify(self, output: str) -> ProbeResult:
        """The success marker anywhere in stdout+stderr means reachable."""
        if self.config.success_marker in output:
            return ProbeResult(status=ReachabilityStatus.REACHABLE)
        return ProbeResult(status=ReachabilityStatus.UNREACHABLE, details=output)

    def probe(self, profile: ServerProfile) -> ProbeResult:
        """
        Run the check for ``profile``.

        A timeout is reported as UNREACHABLE with a TIMEOUT detail;
        ``subprocess.run`` kills and reaps the child before returning.

        Raises:
            ProbeExecutionError: If the check executable cannot be started
        """
        argv = self.build_command(profile)
        try:
            completed = subprocess.run(
                argv,
                shell=False,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.config.timeout_seconds,
                text=True,
                errors="replace",
                check=False,
            )
        except subprocess.TimeoutExpired:
            self.logger.warning(
                "Connection check timed out",
                extra={"name": profile.name, "timeout_seconds": self.config.timeout_seconds},
            )
            return ProbeResult(status=ReachabilityStatus.UNREACHABLE, details=PROBE_TIMEOUT_DETAIL)
        except OSError as e:
            raise ProbeExecutionError(
                "Connection check could not be executed",
                cause=e,
                details=e.strerror or str(e),
                executable=self.config.command[0],
            ) from e

        result = self.classify(completed.stdout or "")
        self.logger.info(
            "Connection check finished",
            extra={
                "name": profile.name,
                "returncode": completed.returncode,
                "status": result.status.value,
            },
        )
        return result

    @operation()
    def test_connection(self, external_id: str, name: str) -> ProbeResult:
        """
        Look up (account, name) and probe it.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            ProbeExecutionError: If the check executable cannot be started
        """
        profile = self.store.get_profile(external_id, name)
        if profile is None:
            raise ProfileNotFoundError(external_id=external_id, name=name)
        return self.probe(profile)
