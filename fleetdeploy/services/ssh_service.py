"""SSH transport for running commands on fleet hosts."""

import asyncio
import time
from typing import Optional

import asyncssh

from fleetdeploy.constants import (
    DEFAULT_SSH_PORT,
    SSH_COMMAND_TIMEOUT,
    SSH_CONNECT_ATTEMPTS,
    SSH_CONNECTION_TIMEOUT,
    SSH_RETRY_DELAY,
)
from fleetdeploy.exceptions import AuthError, CommandError, NetworkError
from fleetdeploy.logger import DeployLogger
from fleetdeploy.models.inventory import Credential
from fleetdeploy.models.results import SSHResult


class RemoteSession:
    """An authenticated SSH connection to one host."""

    def __init__(
        self,
        conn: asyncssh.SSHClientConnection,
        host: str,
        credential: Credential,
        command_timeout: Optional[float] = SSH_COMMAND_TIMEOUT,
        logger: Optional[DeployLogger] = None,
    ):
        self._conn = conn
        self.host = host
        self.credential = credential
        self.command_timeout = command_timeout
        self.logger = logger
        self._closed = False

    @property
    def username(self) -> str:
        return self.credential.username

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(
        self,
        command: str,
        input: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> SSHResult:
        """
        Execute command on the host and wait for it to exit.

        Args:
            command: Shell command to execute
            input: Bytes written to the command's stdin, then EOF
            timeout: Command timeout in seconds (default: session timeout)

        Returns:
            SSHResult with execution details

        Raises:
            NetworkError: If the channel fails
            CommandError: If the command times out
        """
        if self._closed:
            raise NetworkError(f"Session to {self.host} is closed", context=command)

        timeout = timeout if timeout is not None else self.command_timeout

        if self.logger:
            self.logger.log_command(self.host, command)

        start_time = time.time()
        try:
            result = await self._conn.run(
                command, input=input, check=False, timeout=timeout, encoding=None
            )
        except asyncio.TimeoutError:
            raise CommandError(f"Command timed out after {timeout}s on {self.host}: {command}")
        except (asyncssh.Error, OSError) as e:
            raise NetworkError(
                f"SSH channel to {self.host} failed: {e}", context=f"Command: {command}"
            )

        exit_status = result.exit_status if result.exit_status is not None else -1
        ssh_result = SSHResult(
            returncode=exit_status,
            stdout=_decode(result.stdout),
            stderr=_decode(result.stderr),
            host=self.host,
            command=command,
            duration_seconds=time.time() - start_time,
        )

        if self.logger:
            self.logger.log_output(ssh_result.stdout, "stdout")
            self.logger.log_output(ssh_result.stderr, "stderr")

        return ssh_result

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._conn.close()
        try:
            await self._conn.wait_closed()
        except (asyncssh.Error, OSError) as e:
            if self.logger:
                self.logger.log(f"[{self.host}] Error while closing session: {e}", "DEBUG")

    def __repr__(self) -> str:
        return f"RemoteSession(host={self.host}, user={self.username}, closed={self._closed})"


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class SSHTransport:
    """
    Opens password-authenticated SSH sessions.

    Host keys are not verified: fleet devices are provisioned with keys
    that are ephemeral or unknown to the operator.
    """

    def __init__(
        self,
        port: int = DEFAULT_SSH_PORT,
        connect_timeout: float = SSH_CONNECTION_TIMEOUT,
        attempts: int = SSH_CONNECT_ATTEMPTS,
        retry_delay: float = SSH_RETRY_DELAY,
        command_timeout: Optional[float] = SSH_COMMAND_TIMEOUT,
        logger: Optional[DeployLogger] = None,
    ):
        """
        Initialize SSH transport.

        Args:
            port: SSH port
            connect_timeout: Timeout per connection attempt in seconds
            attempts: Connection attempts on network failures
            retry_delay: Fixed delay between attempts in seconds
            command_timeout: Default timeout for remote commands
            logger: Optional logger for attempt failures
        """
        self.port = port
        self.connect_timeout = connect_timeout
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.command_timeout = command_timeout
        self.logger = logger

    async def connect(self, host: str, credential: Credential) -> RemoteSession:
        """
        Connect and authenticate to a host.

        Network failures are retried up to `attempts` times. An authentication
        rejection is raised at once, since retrying the same secret cannot help.

        Raises:
            AuthError: If the host rejects the credential
            NetworkError: If every attempt failed at the network level
        """
        target = f"{credential.username}@{host}:{self.port}"
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.attempts + 1):
            try:
                conn = await asyncssh.connect(
                    host,
                    port=self.port,
                    username=credential.username,
                    password=credential.secret,
                    known_hosts=None,
                    client_keys=None,
                    agent_path=None,
                    connect_timeout=self.connect_timeout,
                )
                return RemoteSession(
                    conn,
                    host,
                    credential,
                    command_timeout=self.command_timeout,
                    logger=self.logger,
                )
            except asyncssh.PermissionDenied as e:
                raise AuthError(host, credential.username, context=str(e))
            except (asyncssh.Error, OSError, asyncio.TimeoutError) as e:
                last_error = e
                if self.logger:
                    self.logger.host(
                        host,
                        f"SSH connection to {target} failed (attempt {attempt}/{self.attempts}): {str(e) or type(e).__name__}",
                        "WARNING",
                    )
                if attempt < self.attempts:
                    await asyncio.sleep(self.retry_delay)

        raise NetworkError(
            f"SSH connection to {target} failed after {self.attempts} attempts",
            context=str(last_error) if last_error else None,
        )
