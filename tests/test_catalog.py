"""Tests for the resource catalog and default resolution."""

import pytest

from catalog import (
    CATALOG,
    EC2,
    KINDS,
    S3,
    SG,
    SUBNET,
    VPC,
    Ec2Config,
    S3Config,
    SgConfig,
    SubnetConfig,
    VpcConfig,
    kind_info,
    recognized_keys,
    resolve,
    split_ids,
    value_or_default,
)
from errors import UnknownKindError


class TestCatalog:
    """Tests for kind lookup."""

    def test_palette_offers_five_kinds(self) -> None:
        """The palette offers exactly the five catalog kinds."""
        assert set(KINDS) == {VPC, SUBNET, EC2, S3, SG}
        assert set(CATALOG) == set(KINDS)

    def test_terraform_types(self) -> None:
        """Each kind maps to its AWS provider resource type."""
        assert kind_info(EC2).terraform_type == "aws_instance"
        assert kind_info(S3).terraform_type == "aws_s3_bucket"
        assert kind_info(VPC).terraform_type == "aws_vpc"
        assert kind_info(SG).terraform_type == "aws_security_group"

    def test_unknown_kind_raises(self) -> None:
        """Looking up a kind outside the catalog is a caller error."""
        with pytest.raises(UnknownKindError):
            kind_info("lambda")

    def test_recognized_keys_are_ordered(self) -> None:
        """Keys come back in form order."""
        assert recognized_keys(EC2) == [
            "instanceType", "ami", "subnetId", "securityGroupIds", "tags",
        ]

    def test_security_group_ids_is_read_only(self) -> None:
        """securityGroupIds is derived from connections."""
        assert kind_info(EC2).key("securityGroupIds").read_only is True
        assert kind_info(EC2).key("ami").read_only is False


class TestValueOrDefault:
    """Tests for the single default-resolution function."""

    def test_absent_key_uses_default(self) -> None:
        assert value_or_default(EC2, {}, "ami") == "ami-0c55b159cbfafe1f0"
        assert value_or_default(EC2, {}, "instanceType") == "t3.medium"

    def test_empty_value_uses_default(self) -> None:
        assert value_or_default(S3, {"bucketName": ""}, "bucketName") == "my-bucket"

    def test_configured_value_wins(self) -> None:
        assert value_or_default(VPC, {"cidrBlock": "10.1.0.0/16"}, "cidrBlock") == "10.1.0.0/16"

    def test_unknown_key_resolves_empty(self) -> None:
        assert value_or_default(SG, {}, "nope") == ""


class TestResolve:
    """Tests for typed per-kind config."""

    def test_ec2_defaults(self) -> None:
        cfg = resolve(EC2, {})
        assert cfg == Ec2Config(
            ami="ami-0c55b159cbfafe1f0",
            instance_type="t3.medium",
            subnet_id="",
            security_group_ids=(),
            tags='Name = "example"',
        )

    def test_ec2_security_group_ids_split(self) -> None:
        cfg = resolve(EC2, {"securityGroupIds": "sg-1, sg-2,,sg-1"})
        assert cfg.security_group_ids == ("sg-1", "sg-2")

    def test_s3_versioning_flag(self) -> None:
        assert resolve(S3, {"versioning": "enabled"}).versioning is True
        assert resolve(S3, {"versioning": "disabled"}).versioning is False
        assert resolve(S3, {}) == S3Config("my-bucket", False, 'Name = "example"')

    def test_vpc_dns_flags(self) -> None:
        cfg = resolve(VPC, {"enableDnsSupport": "true", "enableDnsHostnames": "yes"})
        assert isinstance(cfg, VpcConfig)
        assert cfg.enable_dns_support is True
        assert cfg.enable_dns_hostnames is False
        assert cfg.cidr_block == "10.0.0.0/16"

    def test_sg_defaults(self) -> None:
        assert resolve(SG, {}) == SgConfig(
            "my-security-group", "Managed by InfraQ", "", 'Name = "example"',
        )

    def test_subnet_placeholder(self) -> None:
        assert resolve(SUBNET, {}) == SubnetConfig('Name = "example"')


class TestSplitIds:
    """Tests for comma separated id lists."""

    def test_empty(self) -> None:
        assert split_ids("") == ()

    def test_order_kept_and_repeats_dropped(self) -> None:
        assert split_ids("b,a,b") == ("b", "a")
