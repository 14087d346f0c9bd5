from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Sequence

from .errors import SshLaunchError
from .models import SshKey

logger = logging.getLogger(__name__)

SSH_BINARY = "ssh"
HOST_KEY_CHECK_OPTIONS = ("-o", "StrictHostKeyChecking no", "-o", "UserKnownHostsFile /dev/null")


def find_ssh_binary() -> str:
    path = shutil.which(SSH_BINARY)
    if path is None:
        raise SshLaunchError(f"Could not find {SSH_BINARY} in PATH")
    return path


def build_ssh_args(
    key: SshKey,
    address: str,
    *,
    disable_host_key_check: bool = False,
    remote_command: Sequence[str] = (),
) -> list[str]:
    """Return the ssh arguments (without the program name) for one connection.

    ``-t`` is always passed so that commands needing a TTY (sudo with
    requiretty, for instance) keep working.
    """
    args = ["-t", "-i", str(key.path)]
    if disable_host_key_check:
        args.extend(HOST_KEY_CHECK_OPTIONS)
    args.append(f"{key.username}@{address}")
    if remote_command:
        args.append(" ".join(remote_command))
    return args


def exec_ssh(args: Sequence[str]) -> None:
    """Replace the current process with ssh.

    Platforms without exec semantics run ssh as a child and exit with its status.
    """
    binary = find_ssh_binary()
    argv = [SSH_BINARY, *args]
    logger.debug("Executing %s %s", binary, " ".join(args))

    if os.name != "posix":
        try:
            result = subprocess.run([binary, *args], check=False)
        except OSError as error:
            raise SshLaunchError(f"Cannot spawn ssh: {error}") from error
        raise SystemExit(result.returncode)

    try:
        os.execv(binary, argv)
    except OSError as error:
        raise SshLaunchError(f"Cannot spawn ssh: {error}") from error
