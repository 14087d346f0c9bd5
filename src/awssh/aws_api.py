from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ProviderError
from .matching import camel_case

logger = logging.getLogger(__name__)

TAG_PREFIX = "tag:"
RUNNING_STATE = "running"

Accessor = Callable[[Mapping[str, Any]], Any]


def _field(name: str) -> Accessor:
    return lambda instance: instance.get(name)


def _nested(name: str, key: str) -> Accessor:
    return lambda instance: (instance.get(name) or {}).get(key)


def _joined(name: str, key: str) -> Accessor:
    def accessor(instance: Mapping[str, Any]) -> str | None:
        values = [str(item[key]) for item in instance.get(name) or () if item.get(key) is not None]
        return ",".join(values) if values else None

    return accessor


# External (EC2 query API) attribute names, paired with how to read each one
# from a boto3 instance description.
INSTANCE_ATTRIBUTES: tuple[tuple[str, Accessor], ...] = (
    ("amiLaunchIndex", _field("AmiLaunchIndex")),
    ("architecture", _field("Architecture")),
    ("blockDeviceMapping", _joined("BlockDeviceMappings", "DeviceName")),
    ("bootMode", _field("BootMode")),
    ("capacityReservationId", _field("CapacityReservationId")),
    (
        "capacityReservationSpecification",
        _nested("CapacityReservationSpecification", "CapacityReservationPreference"),
    ),
    ("clientToken", _field("ClientToken")),
    ("cpuOptions", _nested("CpuOptions", "CoreCount")),
    ("currentInstanceBootMode", _field("CurrentInstanceBootMode")),
    ("dnsName", _field("PublicDnsName")),
    ("ebsOptimized", _field("EbsOptimized")),
    ("enaSupport", _field("EnaSupport")),
    ("enclaveOptions", _nested("EnclaveOptions", "Enabled")),
    ("groupSet", _joined("SecurityGroups", "GroupName")),
    ("hibernationOptions", _nested("HibernationOptions", "Configured")),
    ("hypervisor", _field("Hypervisor")),
    ("iamInstanceProfile", _nested("IamInstanceProfile", "Arn")),
    ("imageId", _field("ImageId")),
    ("instanceId", _field("InstanceId")),
    ("instanceLifecycle", _field("InstanceLifecycle")),
    ("instanceState", _nested("State", "Name")),
    ("instanceType", _field("InstanceType")),
    ("ipAddress", _field("PublicIpAddress")),
    ("ipv6Address", _field("Ipv6Address")),
    ("kernelId", _field("KernelId")),
    ("keyName", _field("KeyName")),
    ("launchTime", _field("LaunchTime")),
    ("licenseSet", _joined("Licenses", "LicenseConfigurationArn")),
    ("maintenanceOptions", _nested("MaintenanceOptions", "AutoRecovery")),
    ("metadataOptions", _nested("MetadataOptions", "HttpTokens")),
    ("monitoring", _nested("Monitoring", "State")),
    ("networkInterfaceSet", _joined("NetworkInterfaces", "NetworkInterfaceId")),
    ("outpostArn", _field("OutpostArn")),
    ("placement", _nested("Placement", "AvailabilityZone")),
    ("platform", _field("Platform")),
    ("platformDetails", _field("PlatformDetails")),
    ("privateDnsName", _field("PrivateDnsName")),
    ("privateDnsNameOptions", _nested("PrivateDnsNameOptions", "HostnameType")),
    ("privateIpAddress", _field("PrivateIpAddress")),
    ("productCodes", _joined("ProductCodes", "ProductCodeId")),
    ("ramdiskId", _field("RamdiskId")),
    ("reason", _field("StateTransitionReason")),
    ("rootDeviceName", _field("RootDeviceName")),
    ("rootDeviceType", _field("RootDeviceType")),
    ("sourceDestCheck", _field("SourceDestCheck")),
    ("spotInstanceRequestId", _field("SpotInstanceRequestId")),
    ("sriovNetSupport", _field("SriovNetSupport")),
    ("stateReason", _nested("StateReason", "Message")),
    ("subnetId", _field("SubnetId")),
    ("tpmSupport", _field("TpmSupport")),
    ("usageOperation", _field("UsageOperation")),
    ("virtualizationType", _field("VirtualizationType")),
    ("vpcId", _field("VpcId")),
)


class AwsEc2Service:
    def __init__(self, profile: str | None = None, region: str | None = None) -> None:
        self.profile = profile or None
        self.region = region or None
        try:
            self._session = boto3.Session(profile_name=self.profile, region_name=self.region)
        except BotoCoreError as error:
            raise ProviderError(f"Cannot create AWS session: {error}") from error

    def list_running_instances(self) -> list[dict[str, str]]:
        filters = [{"Name": "instance-state-name", "Values": [RUNNING_STATE]}]
        records: list[dict[str, str]] = []
        try:
            ec2 = self._session.client("ec2")
            paginator = ec2.get_paginator("describe_instances")
            for page in paginator.paginate(Filters=filters):
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        records.append(collect_instance_data(instance))
        except (BotoCoreError, ClientError) as error:
            raise ProviderError(f"Error while listing EC2 instances: {error}") from error

        logger.debug("Found %d running instance(s) in %s", len(records), self.region)
        return records


def collect_instance_data(instance: Mapping[str, Any]) -> dict[str, str]:
    """Flatten one boto3 instance description into external-name -> string pairs."""
    record: dict[str, str] = {}
    for name, accessor in INSTANCE_ATTRIBUTES:
        value = accessor(instance)
        if value is None:
            continue
        record[name] = format_value(value)

    for key, value in _tags(instance.get("Tags") or ()):
        record[TAG_PREFIX + key] = value
    return record


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def column_value(record: Mapping[str, str], column: str) -> str:
    if not column.startswith(TAG_PREFIX):
        column = camel_case(column)
    return record.get(column, "")


def _tags(tags: Iterable[Mapping[str, str]]) -> Iterable[tuple[str, str]]:
    for tag in tags:
        key = tag.get("Key")
        if key is None:
            continue
        yield key, tag.get("Value", "")
