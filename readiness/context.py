# readiness/context.py
"""
Region resolution and assessment context construction.

The region is resolved once per run and threaded into every check through
the AssessmentContext, together with the caller identity.
"""

import logging
import os
from typing import Mapping, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from config import CLOUDSHELL_EXECUTION_ENV
from models import AssessmentContext

logger = logging.getLogger(__name__)


def resolve_region(cli_region: Optional[str], session,
                   environ: Optional[Mapping[str, str]] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    Return (region, source) following CLI -> profile -> env -> CloudShell.

    The profile step uses whatever region the session resolved, which for a
    boto3 session already folds in AWS_DEFAULT_REGION.
    """
    environ = os.environ if environ is None else environ
    if cli_region:
        return cli_region, "argument"
    session_region = getattr(session, "region_name", None)
    if session_region:
        return session_region, "profile"
    if environ.get("AWS_DEFAULT_REGION"):
        return environ["AWS_DEFAULT_REGION"], "environment"
    if environ.get("AWS_EXECUTION_ENV") == CLOUDSHELL_EXECUTION_ENV and environ.get("AWS_REGION"):
        return environ["AWS_REGION"], "cloudshell"
    return None, None


def get_caller_identity_live(session, region: Optional[str] = None) -> dict:
    """
    Call STS GetCallerIdentity. Caller handles ClientError/BotoCoreError.
    """
    sts = session.client("sts", region_name=region) if region else session.client("sts")
    return sts.get_caller_identity()


def build_context(session, region: Optional[str], region_source: Optional[str],
                  environ: Optional[Mapping[str, str]] = None) -> AssessmentContext:
    """
    Build the immutable context for a run.

    A failed identity lookup is logged and leaves account id and ARN unset;
    the caller-identity check reports it.
    """
    environ = os.environ if environ is None else environ
    account_id = None
    caller_arn = None
    try:
        identity = get_caller_identity_live(session, region)
        account_id = identity.get("Account")
        caller_arn = identity.get("Arn")
    except (ClientError, BotoCoreError) as e:
        logger.warning("Could not resolve caller identity: %s", e)

    return AssessmentContext(
        session=session,
        region=region,
        region_source=region_source,
        account_id=account_id,
        caller_arn=caller_arn,
        execution_env=environ.get("AWS_EXECUTION_ENV"),
    )
