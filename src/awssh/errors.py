from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class AwsshError(Exception):
    """Base class for every condition that ends an awssh run with a non-zero status."""


class ConfigError(AwsshError):
    pass


class ConfigNotFoundError(ConfigError):
    def __init__(self, searched: Sequence[Path]) -> None:
        self.searched = tuple(searched)
        super().__init__(f"Found no config files in {', '.join(str(path) for path in self.searched)}")


class ConfigParseError(ConfigError):
    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Invalid config file {path}: {reason}")


class KeySpecError(ConfigError):
    def __init__(self, spec: str) -> None:
        self.spec = spec
        super().__init__(f"Invalid key spec '{spec}': missing @")


class KeyStoreError(ConfigError):
    pass


class ProviderError(AwsshError):
    pass


class SelectionError(AwsshError):
    pass


class AddressError(AwsshError):
    pass


class SshLaunchError(AwsshError):
    pass


class MissingKeyError(AwsshError):
    def __init__(self, key_name: str, instance_id: str = "") -> None:
        self.key_name = key_name
        self.instance_id = instance_id
        super().__init__(f"No SSH key called '{key_name}'")

    def guidance(self) -> str:
        if not self.key_name:
            return (
                f"Instance {self.instance_id or '?'} was launched without a key pair, so there is\n"
                "no key file awssh could use to connect to it."
            )
        return (
            f"I don't have a key called {self.key_name}. Please create a file called "
            f"user@{self.key_name}.pem in the\n"
            "keys directory of the awssh configuration directory containing the private SSH\n"
            "key needed to connect to that instance."
        )
