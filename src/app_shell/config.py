import logging
import os
import sys

from src.rules.models import Rules

logger = logging.getLogger(__name__)


def configure_logging(rules: Rules) -> None:
    logging.basicConfig(
        level=getattr(logging, rules.ops.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    Exits with status 1 if a required environment variable is unset.
    """
    missing = [env_var for env_var in rules.ops.required_env if env_var not in os.environ]

    if missing:
        print(
            f"CRITICAL: Missing required environment variables: {', '.join(missing)}",
            file=sys.stderr,
        )
        sys.exit(1)

    logger.debug("Configuration validated")
