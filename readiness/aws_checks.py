# readiness/aws_checks.py
"""
Control Tower readiness checks.

- Contains pure-rule functions that accept plain values or API responses.
- Live helpers wrap single read-only boto3 calls; they let ClientError
  propagate to the runner.
- Each check is registered in CHECKS, in the order the report prints them:
  * Organizations enabled
  * AWS Config recorders and delivery channels
  * CloudTrail trails
  * Region support
  * Account count
  * Service Control Policies
  * Caller identity type
  * CloudFormation StackSets
  * VPC count
  * IAM Identity Center instance
  * Management account email
  * Identity Center / region alignment
  * Config aggregators
  * Guardrails and member-account reminders (messaging only)
- A failing API call degrades only its own check to a CRITICAL
  "cannot determine" result.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from config import (
    CONTROL_TOWER_STACKSET_PREFIX,
    CONTROL_TOWER_TRAIL_PREFIX,
    DEFAULT_SCP_NAME,
    MAX_ACCOUNTS_BEFORE_WARNING,
    MAX_VPCS_BEFORE_WARNING,
    QUICKSETUP_STACKSET_PREFIX,
    SUPPORTED_REGIONS,
)
from models import AssessmentContext, CheckResult, Status

logger = logging.getLogger(__name__)

KNOWN_PRINCIPAL_TYPES = ("user", "assumed-role", "root", "federated-user", "role")

# --- Pure rule helpers -----------------------------------------------------

def region_is_supported(region: Optional[str]) -> bool:
    return bool(region) and region in SUPPORTED_REGIONS


def classify_region(region: Optional[str]) -> Status:
    """
    CRITICAL when the region is unset or not a Control Tower home region.
    """
    return Status.OK if region_is_supported(region) else Status.CRITICAL


def account_count_exceeds_limit(count: int) -> bool:
    return count > MAX_ACCOUNTS_BEFORE_WARNING


def vpc_count_exceeds_limit(count: int) -> bool:
    return count > MAX_VPCS_BEFORE_WARNING


def non_default_scp_names(policies: Iterable[Dict]) -> List[str]:
    """
    Names of every SCP except the AWS managed allow-all policy.
    """
    return [p.get("Name", "") for p in policies if p.get("Name") != DEFAULT_SCP_NAME]


def classify_scps(policies: Sequence[Dict]) -> Status:
    return Status.WARNING if len(policies) > 1 else Status.OK


def partition_stack_sets(names: Iterable[str]) -> Dict[str, List[str]]:
    """
    Split StackSet names into control_tower, quicksetup and other.

    Every name lands in exactly one bucket.
    """
    parts: Dict[str, List[str]] = {"control_tower": [], "quicksetup": [], "other": []}
    for name in names:
        if name.startswith(CONTROL_TOWER_STACKSET_PREFIX):
            parts["control_tower"].append(name)
        elif name.startswith(QUICKSETUP_STACKSET_PREFIX):
            parts["quicksetup"].append(name)
        else:
            parts["other"].append(name)
    return parts


def split_trails(names: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Return (control_tower_trails, other_trails).
    """
    control_tower, other = [], []
    for name in names:
        if name.startswith(CONTROL_TOWER_TRAIL_PREFIX):
            control_tower.append(name)
        else:
            other.append(name)
    return control_tower, other


def principal_type(arn: Optional[str]) -> str:
    """
    Principal type from an STS caller ARN: user, assumed-role, root,
    federated-user, role or unknown.
    """
    if not arn:
        return "unknown"
    parts = arn.split(":", 5)
    if len(parts) < 6 or parts[0] != "arn":
        return "unknown"
    kind = parts[5].split("/", 1)[0]
    return kind if kind in KNOWN_PRINCIPAL_TYPES else "unknown"


def region_from_arn(arn: Optional[str]) -> Optional[str]:
    """
    Region field of an ARN, or None when the ARN is global or malformed.
    """
    if not arn:
        return None
    parts = arn.split(":")
    if len(parts) < 6 or parts[0] != "arn":
        return None
    return parts[3] or None


def resolve_sso_home_region(instance_arn: Optional[str], queried_region: Optional[str],
                            current_region: Optional[str]) -> Tuple[Optional[str], str]:
    """
    Return (home_region, extraction_path) for an Identity Center instance.

    Paths, in order of preference:
    - "arn": the region field of the instance ARN
    - "query": the regional ListInstances endpoint that returned the instance
    - "assumed": nothing could be derived; the current region is assumed

    find_sso_instance always reports the region it queried, so the readiness
    checks only ever see "arn" or "query"; "assumed" covers callers that hold
    an instance without knowing which endpoint returned it.
    """
    region = region_from_arn(instance_arn)
    if region:
        return region, "arn"
    if queried_region:
        return queried_region, "query"
    return current_region, "assumed"

# --- Live AWS helpers -----------------------------------------------------

def describe_organization_live(session) -> Dict:
    """
    Return the Organization dict. Raises ClientError when Organizations is
    not in use or not accessible.
    """
    org = session.client("organizations")
    return org.describe_organization().get("Organization", {})


def list_accounts_live(session) -> List[Dict]:
    org = session.client("organizations")
    accounts: List[Dict] = []
    for page in org.get_paginator("list_accounts").paginate():
        accounts.extend(page.get("Accounts", []))
    return accounts


def list_scps_live(session) -> List[Dict]:
    org = session.client("organizations")
    policies: List[Dict] = []
    paginator = org.get_paginator("list_policies")
    for page in paginator.paginate(Filter="SERVICE_CONTROL_POLICY"):
        policies.extend(page.get("Policies", []))
    return policies


def describe_config_recorders_live(session, region: Optional[str]) -> List[Dict]:
    cfg = session.client("config", region_name=region)
    return cfg.describe_configuration_recorders().get("ConfigurationRecorders", []) or []


def describe_delivery_channels_live(session, region: Optional[str]) -> List[Dict]:
    cfg = session.client("config", region_name=region)
    return cfg.describe_delivery_channels().get("DeliveryChannels", []) or []


def describe_config_aggregators_live(session, region: Optional[str]) -> List[Dict]:
    cfg = session.client("config", region_name=region)
    return cfg.describe_configuration_aggregators().get("ConfigurationAggregators", []) or []


def describe_trails_live(session, region: Optional[str]) -> List[Dict]:
    """
    Trails visible from the region, including multi-region shadow trails.
    """
    trail = session.client("cloudtrail", region_name=region)
    return trail.describe_trails().get("trailList", []) or []


def list_stack_sets_live(session, region: Optional[str]) -> List[Dict]:
    cfn = session.client("cloudformation", region_name=region)
    summaries: List[Dict] = []
    for page in cfn.get_paginator("list_stack_sets").paginate(Status="ACTIVE"):
        summaries.extend(page.get("Summaries", []))
    return summaries


def count_vpcs_live(session, region: Optional[str]) -> int:
    ec2 = session.client("ec2", region_name=region)
    count = 0
    for page in ec2.get_paginator("describe_vpcs").paginate():
        count += len(page.get("Vpcs", []))
    return count


def list_sso_instances_live(session, region: Optional[str]) -> List[Dict]:
    sso = session.client("sso-admin", region_name=region)
    return sso.list_instances().get("Instances", []) or []


def find_sso_instance(session, region: str) -> Tuple[Optional[Dict], Optional[str]]:
    """
    Look for an Identity Center instance in the current region, then check
    the other supported regions.

    Returns (instance, region_that_returned_it) or (None, None). Errors in
    the current region propagate; errors in the other regions are skipped.
    """
    instances = list_sso_instances_live(session, region)
    if instances:
        return instances[0], region
    for other in sorted(SUPPORTED_REGIONS - {region}):
        try:
            found = list_sso_instances_live(session, other)
        except (ClientError, BotoCoreError) as e:
            logger.debug("Identity Center lookup in %s failed: %s", other, e)
            continue
        if found:
            return found[0], other
    return None, None

# --- Check registry -------------------------------------------------------

@dataclass(frozen=True)
class Check:
    """
    A single readiness check: takes the context and fills a CheckReport.

    `subject` completes the sentence "Cannot determine ..." when the check's
    API calls fail.
    """
    id: str
    title: str
    subject: str
    func: Callable[[AssessmentContext, "CheckReport"], None]


class CheckReport:
    """Collects the results one check produces."""

    def __init__(self, check: Check):
        self.check = check
        self.results: List[CheckResult] = []

    def add(self, status: Status, message: str, details: str = "", **metadata) -> CheckResult:
        result = CheckResult(
            check=self.check.id,
            title=self.check.title,
            status=status,
            message=message,
            details=details,
            metadata={k: str(v) for k, v in metadata.items()},
        )
        self.results.append(result)
        return result

    def ok(self, message: str, details: str = "", **metadata) -> CheckResult:
        return self.add(Status.OK, message, details, **metadata)

    def info(self, message: str, details: str = "", **metadata) -> CheckResult:
        return self.add(Status.INFO, message, details, **metadata)

    def warning(self, message: str, details: str = "", **metadata) -> CheckResult:
        return self.add(Status.WARNING, message, details, **metadata)

    def critical(self, message: str, details: str = "", **metadata) -> CheckResult:
        return self.add(Status.CRITICAL, message, details, **metadata)


CHECKS: List[Check] = []


def register(check_id: str, title: str, subject: str):
    def decorator(func):
        CHECKS.append(Check(id=check_id, title=title, subject=subject, func=func))
        return func
    return decorator


def _error_code(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response.get("Error", {}).get("Code", "Unknown")
    return type(e).__name__


def _names(items: Iterable[Dict], key: str) -> List[str]:
    return [i.get(key, "") for i in items if i.get(key)]

# --- Checks ---------------------------------------------------------------

@register("organizations", "AWS Organizations", "whether AWS Organizations is enabled")
def check_organizations(ctx: AssessmentContext, report: CheckReport) -> None:
    try:
        org = describe_organization_live(ctx.session)
    except ClientError as e:
        if _error_code(e) != "AWSOrganizationsNotInUseException":
            raise
        report.critical("AWS Organizations is not enabled; Control Tower requires an organization",
                        details=str(e))
        return

    report.ok(f"AWS Organizations is enabled (ID: {org.get('Id')})", organization_id=org.get("Id"))
    feature_set = org.get("FeatureSet")
    if feature_set and feature_set != "ALL":
        report.warning(f"Organization feature set is {feature_set}; Control Tower requires all features enabled",
                       feature_set=feature_set)
    management_id = org.get("MasterAccountId")
    if ctx.account_id and management_id and management_id != ctx.account_id:
        report.critical(
            f"Account {ctx.account_id} is not the management account ({management_id}); "
            "run this assessment from the management account",
            management_account_id=management_id,
        )


@register("config-recorder", "AWS Config", "whether AWS Config recorders exist")
def check_config_recorder(ctx: AssessmentContext, report: CheckReport) -> None:
    recorders = _names(describe_config_recorders_live(ctx.session, ctx.region), "name")
    channels = _names(describe_delivery_channels_live(ctx.session, ctx.region), "name")
    if recorders:
        report.warning(
            f"Found existing AWS Config recorder(s): {', '.join(recorders)}; "
            "these may conflict with the recorder Control Tower creates",
            details="\n".join(recorders),
            count=len(recorders),
        )
    else:
        report.ok("No AWS Config recorder found")
    if channels:
        report.warning(
            f"Found existing AWS Config delivery channel(s): {', '.join(channels)}; "
            "remove them before setting up the landing zone",
            details="\n".join(channels),
            count=len(channels),
        )


@register("cloudtrail", "AWS CloudTrail", "which CloudTrail trails exist")
def check_cloudtrail(ctx: AssessmentContext, report: CheckReport) -> None:
    names = _names(describe_trails_live(ctx.session, ctx.region), "Name")
    control_tower, other = split_trails(names)
    if control_tower:
        report.info(
            f"Control Tower trail found ({', '.join(control_tower)}); a previous installation may exist",
            details="\n".join(control_tower),
        )
    if other:
        report.warning(
            f"Found existing CloudTrail trail(s): {', '.join(other)}; "
            "Control Tower creates an organization trail, review for duplicate logging costs",
            details="\n".join(other),
            count=len(other),
        )
    if not names:
        report.ok("No CloudTrail trails found")


@register("region", "Region support", "the current region")
def check_region(ctx: AssessmentContext, report: CheckReport) -> None:
    if not ctx.region:
        report.critical("No AWS region configured; set one with 'aws configure' or AWS_DEFAULT_REGION")
    elif classify_region(ctx.region) is Status.CRITICAL:
        report.critical(f"Region {ctx.region} is not supported as a Control Tower home region",
                        details=", ".join(sorted(SUPPORTED_REGIONS)), region=ctx.region)
    else:
        report.ok(f"Region {ctx.region} (from {ctx.region_source}) is supported by Control Tower",
                  region=ctx.region)


@register("account-count", "Account count", "the number of accounts in the organization")
def check_account_count(ctx: AssessmentContext, report: CheckReport) -> None:
    count = len(list_accounts_live(ctx.session))
    report.ok(f"Organization has {count} account(s)", count=count)
    if account_count_exceeds_limit(count):
        report.warning(
            f"More than {MAX_ACCOUNTS_BEFORE_WARNING} accounts; enrolling them into Control Tower will take time",
            count=count,
        )


@register("scps", "Service Control Policies", "which Service Control Policies exist")
def check_scps(ctx: AssessmentContext, report: CheckReport) -> None:
    policies = list_scps_live(ctx.session)
    if classify_scps(policies) is Status.WARNING:
        extra = non_default_scp_names(policies)
        report.warning(
            f"Found {len(policies)} SCPs; review non-default policies for conflicts with guardrails: "
            f"{', '.join(extra)}",
            details="\n".join(extra),
            count=len(policies),
        )
    else:
        report.ok(f"{len(policies)} SCP(s) found; only the default policy is present", count=len(policies))


@register("caller-identity", "Caller identity", "the caller identity")
def check_caller_identity(ctx: AssessmentContext, report: CheckReport) -> None:
    arn = ctx.caller_arn
    if not arn:
        report.critical("Cannot determine the caller identity; check your credentials")
        return
    kind = principal_type(arn)
    if kind == "user":
        report.warning(f"Running as IAM user ({arn}); use the root user or an administrator role",
                       principal_type=kind)
    elif kind in ("assumed-role", "root"):
        report.ok(f"Running as {kind} ({arn})", principal_type=kind)
    elif kind == "unknown":
        report.critical(f"Cannot recognise the caller ARN ({arn}); check your credentials",
                        principal_type=kind)
    else:
        report.info(f"Running as {kind} principal ({arn}); make sure it has administrator access",
                    principal_type=kind)


@register("stacksets", "CloudFormation StackSets", "which CloudFormation StackSets exist")
def check_stacksets(ctx: AssessmentContext, report: CheckReport) -> None:
    names = _names(list_stack_sets_live(ctx.session, ctx.region), "StackSetName")
    parts = partition_stack_sets(names)
    if parts["control_tower"]:
        report.info(
            f"Control Tower StackSets found ({len(parts['control_tower'])}); Control Tower may already be installed",
            details="\n".join(parts["control_tower"]),
        )
    if parts["quicksetup"]:
        report.info(
            f"Systems Manager Quick Setup StackSets found ({len(parts['quicksetup'])})",
            details="\n".join(parts["quicksetup"]),
        )
    if parts["other"]:
        report.warning(
            f"Found {len(parts['other'])} other StackSet(s); review for conflicts: {', '.join(parts['other'])}",
            details="\n".join(parts["other"]),
        )
    if not names:
        report.ok("No active StackSets found")


@register("vpc-count", "VPC count", "the number of VPCs")
def check_vpc_count(ctx: AssessmentContext, report: CheckReport) -> None:
    count = count_vpcs_live(ctx.session, ctx.region)
    report.ok(f"Found {count} VPC(s) in {ctx.region}", count=count)
    if vpc_count_exceeds_limit(count):
        report.warning(
            f"More than {MAX_VPCS_BEFORE_WARNING} VPCs; Account Factory VPC settings may need adjustment",
            count=count,
        )


@register("identity-center", "IAM Identity Center", "whether an IAM Identity Center instance exists")
def check_identity_center(ctx: AssessmentContext, report: CheckReport) -> None:
    instance, found_in = find_sso_instance(ctx.session, ctx.region)
    if instance:
        arn = instance.get("InstanceArn", "")
        report.warning(f"IAM Identity Center instance already exists in {found_in} ({arn}); Control Tower will use it",
                       instance_arn=arn, region=found_in)
    else:
        report.ok("No IAM Identity Center instance found in any supported region")


@register("management-email", "Management account email", "the management account email")
def check_management_email(ctx: AssessmentContext, report: CheckReport) -> None:
    email = describe_organization_live(ctx.session).get("MasterAccountEmail")
    if not email:
        report.critical("Cannot determine the management account email")
        return
    report.ok(f"Management account email: {email}", email=email)
    report.warning(f"Verify you can receive mail at {email}; Control Tower sends notifications there")


@register("sso-region", "Identity Center region alignment (CRITICAL)",
          "the IAM Identity Center region")
def check_sso_region(ctx: AssessmentContext, report: CheckReport) -> None:
    if not ctx.region:
        report.critical("No AWS region configured; cannot compare it with the Identity Center region")
        return
    instance, queried = find_sso_instance(ctx.session, ctx.region)
    if instance is None:
        report.ok("No IAM Identity Center instance found in any supported region")
        report.info(f"Control Tower will set up IAM Identity Center in {ctx.region}")
        return

    home, path = resolve_sso_home_region(instance.get("InstanceArn"), queried, ctx.region)
    if home == ctx.region:
        report.ok(f"Identity Center region {home} (via {path}) matches the current region",
                  region=home, extraction=path)
    else:
        report.critical(
            f"Identity Center is in {home} (via {path}) but the current region is {ctx.region}; "
            f"Control Tower installation will fail. Run the setup from {home}",
            region=home, extraction=path,
        )


@register("config-aggregator", "AWS Config aggregators", "whether AWS Config aggregators exist")
def check_config_aggregator(ctx: AssessmentContext, report: CheckReport) -> None:
    names = _names(describe_config_aggregators_live(ctx.session, ctx.region), "ConfigurationAggregatorName")
    if names:
        report.warning(f"Found existing Config aggregator(s): {', '.join(names)}; review for conflicts",
                       details="\n".join(names), count=len(names))
    else:
        report.ok("No Config aggregators found")


@register("guardrails", "Guardrails", "guardrail deployment")
def check_guardrails(ctx: AssessmentContext, report: CheckReport) -> None:
    report.info("Mandatory guardrails are deployed automatically when the landing zone is set up")
    report.info("Strongly recommended and elective guardrails can be enabled per OU afterwards")


@register("member-accounts", "Member accounts", "member account follow-up")
def check_member_accounts(ctx: AssessmentContext, report: CheckReport) -> None:
    region = ctx.region or "<region>"
    report.info("Before enrolling existing accounts, repeat the AWS Config check inside each member account:")
    report.info(f"aws configservice describe-configuration-recorders --region {region}")
    report.info(f"aws configservice describe-delivery-channels --region {region}")

# --- Runner ---------------------------------------------------------------

CHECK_IDS = [c.id for c in CHECKS]


def get_check(check_id: str) -> Check:
    for check in CHECKS:
        if check.id == check_id:
            return check
    raise KeyError(f"Unknown check: {check_id}")


def run_check(check: Check, ctx: AssessmentContext) -> List[CheckResult]:
    """
    Run one check in isolation.

    API errors discard any partial results and yield a single CRITICAL
    "cannot determine" result.
    """
    report = CheckReport(check)
    try:
        check.func(ctx, report)
    except (ClientError, BotoCoreError) as e:
        code = _error_code(e)
        logger.warning("Check %s failed (%s): %s", check.id, code, e)
        report.results = []
        report.critical(f"Cannot determine {check.subject} ({code})", details=str(e), error_code=code)
    return report.results


def run_assessment(ctx: AssessmentContext, only: Optional[Sequence[str]] = None) -> List[CheckResult]:
    """
    Run the registered checks in order and return all results.

    `only` restricts the run to the given check ids; order stays the registry order.
    """
    if only:
        unknown = set(only) - set(CHECK_IDS)
        if unknown:
            raise ValueError(f"Unknown check id(s): {', '.join(sorted(unknown))}")
    results: List[CheckResult] = []
    for check in CHECKS:
        if only and check.id not in only:
            continue
        logger.debug("Running check %s", check.id)
        results.extend(run_check(check, ctx))
    return results
