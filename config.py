"""
Central configuration and tunable constants.

- Profile and region come from CLI args, the AWS config or environment variables.
- Readiness thresholds and name prefixes are centralized for easy tuning.
"""

# Regions where a Control Tower landing zone can be set up as home region
SUPPORTED_REGIONS = frozenset({
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "ca-central-1",
    "eu-central-1",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "eu-north-1",
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-southeast-1",
    "ap-southeast-2",
})

# Thresholds (strictly greater than triggers a warning)
MAX_ACCOUNTS_BEFORE_WARNING = 100
MAX_VPCS_BEFORE_WARNING = 3

# The AWS managed allow-all SCP attached to every root
DEFAULT_SCP_NAME = "FullAWSAccess"

# Resource name prefixes left behind by Control Tower or other AWS tooling
CONTROL_TOWER_TRAIL_PREFIX = "aws-controltower"
CONTROL_TOWER_STACKSET_PREFIX = "AWSControlTower"
QUICKSETUP_STACKSET_PREFIX = "AWS-QuickSetup"

# Value of AWS_EXECUTION_ENV inside AWS CloudShell
CLOUDSHELL_EXECUTION_ENV = "CloudShell"

CONTROL_TOWER_DOCS_URL = "https://docs.aws.amazon.com/controltower/latest/userguide/getting-started-with-control-tower.html"

# Rich styles per status
STATUS_STYLES = {
    "OK": "bold green",
    "INFO": "bold cyan",
    "WARNING": "bold yellow",
    "CRITICAL": "bold red",
}
