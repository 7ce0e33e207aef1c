# tests/test_rules.py
"""
Unit tests for the pure rule helpers. No AWS access needed.
"""

import pytest

from config import SUPPORTED_REGIONS
from models import Status
from readiness.aws_checks import (
    account_count_exceeds_limit,
    classify_region,
    classify_scps,
    non_default_scp_names,
    partition_stack_sets,
    principal_type,
    region_from_arn,
    resolve_sso_home_region,
    split_trails,
    vpc_count_exceeds_limit,
)


def test_supported_region_set_has_fourteen_members():
    assert len(SUPPORTED_REGIONS) == 14


@pytest.mark.parametrize("region", sorted(SUPPORTED_REGIONS))
def test_supported_regions_classify_ok(region):
    assert classify_region(region) is Status.OK


@pytest.mark.parametrize("region", ["sa-east-1", "ap-south-1", "me-south-1", "us-gov-west-1", "mars-1", "", None])
def test_other_regions_classify_critical(region):
    assert classify_region(region) is Status.CRITICAL


def test_account_threshold_is_strictly_greater_than_100():
    assert not account_count_exceeds_limit(0)
    assert not account_count_exceeds_limit(100)
    assert account_count_exceeds_limit(101)


def test_vpc_threshold_is_strictly_greater_than_3():
    assert not vpc_count_exceeds_limit(3)
    assert vpc_count_exceeds_limit(4)


def test_single_default_scp_is_ok():
    policies = [{"Name": "FullAWSAccess"}]
    assert classify_scps(policies) is Status.OK
    assert non_default_scp_names(policies) == []


def test_extra_scps_warn_and_list_non_default_names():
    policies = [{"Name": "FullAWSAccess"}, {"Name": "DenyLeaveOrg"}, {"Name": "RegionLock"}]
    assert classify_scps(policies) is Status.WARNING
    assert non_default_scp_names(policies) == ["DenyLeaveOrg", "RegionLock"]


def test_stack_set_partitions_are_disjoint_and_complete():
    names = [
        "AWSControlTowerBP-BASELINE-CLOUDTRAIL",
        "AWSControlTowerBP-BASELINE-CONFIG",
        "AWS-QuickSetup-SSMHostMgmt-LA-abc12",
        "network-baseline",
        "AWSControl",  # not the full prefix
    ]
    parts = partition_stack_sets(names)
    assert parts["control_tower"] == names[:2]
    assert parts["quicksetup"] == [names[2]]
    assert parts["other"] == ["network-baseline", "AWSControl"]
    flat = parts["control_tower"] + parts["quicksetup"] + parts["other"]
    assert sorted(flat) == sorted(names)
    assert len(flat) == len(set(flat))


def test_split_trails():
    ct, other = split_trails(["aws-controltower-BaselineCloudTrail", "org-trail"])
    assert ct == ["aws-controltower-BaselineCloudTrail"]
    assert other == ["org-trail"]


@pytest.mark.parametrize("arn,expected", [
    ("arn:aws:iam::123456789012:user/alice", "user"),
    ("arn:aws:sts::123456789012:assumed-role/Admin/session", "assumed-role"),
    ("arn:aws:iam::123456789012:root", "root"),
    ("arn:aws:sts::123456789012:federated-user/bob", "federated-user"),
    ("not-an-arn", "unknown"),
    (None, "unknown"),
])
def test_principal_type(arn, expected):
    assert principal_type(arn) == expected


def test_region_from_arn():
    assert region_from_arn("arn:aws:sso:eu-west-1:123456789012:instance/ssoins-1") == "eu-west-1"
    assert region_from_arn("arn:aws:sso:::instance/ssoins-1") is None
    assert region_from_arn("garbage") is None


def test_sso_home_region_prefers_arn_then_query_then_assumed():
    assert resolve_sso_home_region("arn:aws:sso:eu-west-1::instance/ssoins-1", "us-east-1", "us-east-1") == ("eu-west-1", "arn")
    assert resolve_sso_home_region("arn:aws:sso:::instance/ssoins-1", "eu-west-2", "us-east-1") == ("eu-west-2", "query")
    assert resolve_sso_home_region("arn:aws:sso:::instance/ssoins-1", None, "us-east-1") == ("us-east-1", "assumed")
