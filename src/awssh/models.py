from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class AwsshConfig:
    columns: tuple[str, ...] = ()
    default_region: str = ""
    default_profile: str = ""
    disable_host_key_check: bool | None = None

    def merge(self, other: AwsshConfig) -> AwsshConfig:
        return AwsshConfig(
            columns=other.columns if other.columns else self.columns,
            default_region=other.default_region or self.default_region,
            default_profile=other.default_profile or self.default_profile,
            disable_host_key_check=(
                other.disable_host_key_check
                if other.disable_host_key_check is not None
                else self.disable_host_key_check
            ),
        )


@dataclass(slots=True, frozen=True)
class SshKey:
    username: str
    path: Path


@dataclass(slots=True, frozen=True)
class MatchedInstance:
    index: int
    key_name: str
    record: dict[str, str]

    @property
    def instance_id(self) -> str:
        return self.record.get("instanceId", "")
