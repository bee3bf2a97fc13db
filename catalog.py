#!/usr/bin/env python3
"""
catalog.py - Resource kinds offered by the InfraQ palette

Static registry of the resource kinds a graph can hold, the config keys
the property form edits for each kind, and the literal defaults used when
a key is absent at generation time.

The store keeps config as plain string mappings (what the form edits).
resolve() turns one of those into a typed per-kind config with every
default applied, so the generator never does its own fallbacks.

Usage:
    python catalog.py            # print the catalog
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from errors import UnknownKindError


# =============================================================================
# RESOURCE KINDS
# =============================================================================

VPC = "vpc"
SUBNET = "subnet"
EC2 = "ec2"
S3 = "s3"
SG = "sg"

# Palette order
KINDS = (VPC, SUBNET, EC2, S3, SG)

# Config key the connection validator writes on ec2 nodes
SECURITY_GROUP_IDS = "securityGroupIds"

DEFAULT_TAGS = 'Name = "example"'


@dataclass(frozen=True)
class ConfigKey:
    name: str
    default: str
    label: str
    read_only: bool = False
    choices: Tuple[str, ...] = ()


@dataclass(frozen=True)
class KindInfo:
    kind: str
    terraform_type: str
    display_name: str
    keys: Tuple[ConfigKey, ...] = field(default_factory=tuple)

    def key(self, name: str) -> Optional[ConfigKey]:
        for k in self.keys:
            if k.name == name:
                return k
        return None


_TAGS = ConfigKey("tags", DEFAULT_TAGS, "Tags")

CATALOG: Dict[str, KindInfo] = {
    VPC: KindInfo(VPC, "aws_vpc", "VPC", (
        ConfigKey("cidrBlock", "10.0.0.0/16", "CIDR Block"),
        ConfigKey("enableDnsSupport", "false", "Enable DNS Support", choices=("true", "false")),
        ConfigKey("enableDnsHostnames", "false", "Enable DNS Hostnames", choices=("true", "false")),
        _TAGS,
    )),
    # Placeholder: offered by the palette, no Terraform block yet
    SUBNET: KindInfo(SUBNET, "aws_subnet", "Subnet", (
        _TAGS,
    )),
    EC2: KindInfo(EC2, "aws_instance", "EC2 Instance", (
        ConfigKey("instanceType", "t3.medium", "Instance Type"),
        ConfigKey("ami", "ami-0c55b159cbfafe1f0", "AMI ID"),
        ConfigKey("subnetId", "", "Subnet ID"),
        ConfigKey(SECURITY_GROUP_IDS, "", "Security Group IDs", read_only=True),
        _TAGS,
    )),
    S3: KindInfo(S3, "aws_s3_bucket", "S3 Bucket", (
        ConfigKey("bucketName", "my-bucket", "Bucket Name"),
        ConfigKey("versioning", "disabled", "Versioning", choices=("enabled", "disabled")),
        _TAGS,
    )),
    SG: KindInfo(SG, "aws_security_group", "Security Group", (
        ConfigKey("sgName", "my-security-group", "Security Group Name"),
        ConfigKey("description", "Managed by InfraQ", "Description"),
        ConfigKey("vpcId", "", "VPC ID"),
        _TAGS,
    )),
}


def kind_info(kind: str) -> KindInfo:
    try:
        return CATALOG[kind]
    except KeyError:
        raise UnknownKindError(kind) from None


def recognized_keys(kind: str) -> List[str]:
    return [k.name for k in kind_info(kind).keys]


# =============================================================================
# DEFAULT RESOLUTION
# =============================================================================

def value_or_default(kind: str, config: Mapping[str, str], key: str) -> str:
    """Return config[key], or the catalog default when absent or empty.

    Keys the catalog does not know for this kind resolve to "".
    """
    value = config.get(key)
    if value:
        return str(value)
    spec = kind_info(kind).key(key)
    return spec.default if spec else ""


def split_ids(value: str) -> Tuple[str, ...]:
    """Split a comma separated id list, dropping blanks and repeats."""
    ids: List[str] = []
    for part in value.split(","):
        part = part.strip()
        if part and part not in ids:
            ids.append(part)
    return tuple(ids)


# =============================================================================
# TYPED PER-KIND CONFIG
# =============================================================================

@dataclass(frozen=True)
class VpcConfig:
    cidr_block: str
    enable_dns_support: bool
    enable_dns_hostnames: bool
    tags: str


@dataclass(frozen=True)
class SubnetConfig:
    tags: str


@dataclass(frozen=True)
class Ec2Config:
    ami: str
    instance_type: str
    subnet_id: str
    security_group_ids: Tuple[str, ...]
    tags: str


@dataclass(frozen=True)
class S3Config:
    bucket_name: str
    versioning: bool
    tags: str


@dataclass(frozen=True)
class SgConfig:
    name: str
    description: str
    vpc_id: str
    tags: str


ResolvedConfig = Union[VpcConfig, SubnetConfig, Ec2Config, S3Config, SgConfig]


def resolve(kind: str, config: Mapping[str, str]) -> ResolvedConfig:
    """Build the typed config for a node, applying every default."""
    def get(key: str) -> str:
        return value_or_default(kind, config, key)

    if kind == VPC:
        return VpcConfig(
            cidr_block=get("cidrBlock"),
            enable_dns_support=get("enableDnsSupport") == "true",
            enable_dns_hostnames=get("enableDnsHostnames") == "true",
            tags=get("tags"),
        )
    if kind == EC2:
        return Ec2Config(
            ami=get("ami"),
            instance_type=get("instanceType"),
            subnet_id=get("subnetId"),
            security_group_ids=split_ids(get(SECURITY_GROUP_IDS)),
            tags=get("tags"),
        )
    if kind == S3:
        return S3Config(
            bucket_name=get("bucketName"),
            versioning=get("versioning") == "enabled",
            tags=get("tags"),
        )
    if kind == SG:
        return SgConfig(
            name=get("sgName"),
            description=get("description"),
            vpc_id=get("vpcId"),
            tags=get("tags"),
        )
    if kind == SUBNET:
        return SubnetConfig(tags=get("tags"))
    raise UnknownKindError(kind)


def main():
    for info in CATALOG.values():
        print(f"{info.kind:<8} {info.terraform_type:<20} {info.display_name}")
        for k in info.keys:
            flag = " (read-only)" if k.read_only else ""
            print(f"    {k.name:<20} default={k.default!r}{flag}")


if __name__ == "__main__":
    main()
