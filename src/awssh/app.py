from __future__ import annotations

import argparse
import logging
import shlex
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import TextIO

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    from awssh.aws_api import AwsEc2Service, column_value
    from awssh.config import config_dirs, load_config
    from awssh.errors import AddressError, AwsshError, MissingKeyError, SelectionError
    from awssh.keys import load_keys
    from awssh.matching import row_matches
    from awssh.models import AwsshConfig, MatchedInstance, SshKey
    from awssh.ssh import build_ssh_args, exec_ssh
    from awssh.table import Table
else:
    from .aws_api import AwsEc2Service, column_value
    from .config import config_dirs, load_config
    from .errors import AddressError, AwsshError, MissingKeyError, SelectionError
    from .keys import load_keys
    from .matching import row_matches
    from .models import AwsshConfig, MatchedInstance, SshKey
    from .ssh import build_ssh_args, exec_ssh
    from .table import Table

logger = logging.getLogger("awssh")

NO_MATCH_MESSAGE = "No instances matched the given filters in that region."
PROMPT = "Instance number: "
INDEX_HEADER = "#"

ServiceFactory = Callable[[str, str], AwsEc2Service]
Launcher = Callable[[Sequence[str]], None]


def build_instance_table(
    records: Sequence[Mapping[str, str]],
    columns: Sequence[str],
    *,
    fuzzy: str = "",
    exact: str = "",
) -> tuple[Table, list[MatchedInstance]]:
    """Build the display table, keeping only the rows that pass the filters.

    Indices are dense over the matching rows: the n-th kept row is numbered n
    whatever its position in ``records``.
    """
    table = Table(header=[INDEX_HEADER, *columns])
    matches: list[MatchedInstance] = []

    for record in records:
        values = [column_value(record, column) for column in columns]
        if not row_matches(values, fuzzy=fuzzy, exact=exact):
            continue
        index = len(matches)
        table.add_row([str(index), *values])
        matches.append(
            MatchedInstance(index=index, key_name=record.get("keyName", ""), record=dict(record))
        )
    return table, matches


def prompt_selection(stdin: TextIO, stdout: TextIO) -> int | None:
    """Read an instance number; None means the user chose not to connect."""
    stdout.write(PROMPT)
    stdout.flush()
    try:
        line = stdin.readline()
    except KeyboardInterrupt:
        stdout.write("\n")
        return None

    text = line.strip()
    if not text:
        return None
    if not (text.isascii() and text.isdigit()):
        raise SelectionError(f"Invalid instance index '{text}': not a number")
    return int(text)


def select_instance(
    table: Table,
    matches: Sequence[MatchedInstance],
    stdin: TextIO,
    stdout: TextIO,
) -> MatchedInstance | None:
    if len(matches) == 1:
        return matches[0]

    table.render(stdout)
    selected = prompt_selection(stdin, stdout)
    if selected is None:
        return None
    if selected >= len(matches):
        raise SelectionError(f"Invalid instance index {selected}: too large")
    return matches[selected]


def resolve_key(match: MatchedInstance, keys: Mapping[str, SshKey]) -> SshKey:
    key = keys.get(match.key_name) if match.key_name else None
    if key is None:
        raise MissingKeyError(match.key_name, match.instance_id)
    return key


def instance_address(record: Mapping[str, str]) -> str:
    address = record.get("ipAddress") or record.get("privateIpAddress")
    if not address:
        raise AddressError(
            f"Cannot determine IP address for instance {record.get('instanceId', '?')}"
        )
    return address


def run(
    args: argparse.Namespace,
    *,
    dirs: Sequence[Path] | None = None,
    service_factory: ServiceFactory = AwsEc2Service,
    launcher: Launcher = exec_ssh,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    dirs = config_dirs() if dirs is None else dirs

    config = load_config(dirs)
    keys = load_keys(dirs)

    region = args.region or config.default_region
    if not region:
        raise AwsshError("No region defined, either in the configuration or on the command line")
    profile = args.profile or config.default_profile
    logger.debug("Using region %s", region)

    records = service_factory(profile, region).list_running_instances()
    table, matches = build_instance_table(
        records, config.columns, fuzzy=args.match, exact=args.equal
    )

    if not matches:
        print(NO_MATCH_MESSAGE, file=stdout)
        return 0

    match = select_instance(table, matches, stdin, stdout)
    if match is None:
        return 0

    key = resolve_key(match, keys)
    address = instance_address(match.record)
    ssh_args = build_ssh_args(
        key,
        address,
        disable_host_key_check=_host_key_check_disabled(config),
        remote_command=args.command,
    )

    if args.dry_run:
        print(shlex.join(["ssh", *ssh_args]), file=stdout)
        return 0

    if args.command:
        logger.info(
            "Running command on %s (%s): %s", match.instance_id, address, " ".join(args.command)
        )
    else:
        logger.info("Connecting to %s (%s)", match.instance_id, address)
    launcher(ssh_args)
    return 0


def _host_key_check_disabled(config: AwsshConfig) -> bool:
    return config.disable_host_key_check is True


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="awssh",
        description="Simple SSH launcher to connect to Amazon EC2 instances.",
    )
    parser.add_argument(
        "-r", "--region", default="", help="AWS region to use (set from config if not specified)"
    )
    parser.add_argument(
        "-p", "--profile", default="", help="AWS profile name (set from config if not specified)"
    )
    parser.add_argument(
        "-m",
        "--match",
        default="",
        help=(
            "Only list instances that have a column matching the filter. The filtering is "
            'fuzzy: a column matches if all letters from the filter appear in it in order '
            '(eg. "thm" matches "thismatches").'
        ),
    )
    parser.add_argument(
        "-e",
        "--equal",
        default="",
        help="Only list instances that have a column equal to the given value.",
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Print the ssh command instead of running it"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run on the instance instead of an interactive shell",
    )
    args = parser.parse_args(argv)
    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    return args


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(asctime)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    if not verbose:
        for name in ("boto3", "botocore", "urllib3"):
            logging.getLogger(name).setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        return run(args)
    except MissingKeyError as error:
        print(f"\n{error.guidance()}", file=sys.stderr)
        return 1
    except AwsshError as error:
        logger.error("%s", error)
        return 1
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
