"""
Metric Scaler - CLI.

============================================================
RESPONSIBILITY
============================================================
Computes one scaling signal from the command line.

- Defaults come from AZURE_MONITOR_* environment variables / .env
- Command-line options override them
- Prints the signal on stdout

============================================================
USAGE
============================================================
python -m monitor_scaler --metric-name Length \
    --resource-uri Microsoft.Storage/storageAccounts/acct \
    --aggregation-type Average --aggregation-interval 0:5:0

Exit codes: 0 signal printed, 1 no signal this cycle,
2 configuration error.

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from monitor_scaler.auth import create_credential_provider
from monitor_scaler.client import AzureMonitorMetricsClient
from monitor_scaler.config import ScalerMetadata
from monitor_scaler.exceptions import ConfigurationError
from monitor_scaler.models import AggregationType
from monitor_scaler.rounding import SignalResult
from monitor_scaler.scaler import AzureMonitorScaler


EXIT_OK = 0
EXIT_NO_SIGNAL = 1
EXIT_CONFIG_ERROR = 2


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="monitor-scaler",
        description="Compute an autoscaling signal from an Azure Monitor metric",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Aggregation types:
  """ + ", ".join(a.value for a in AggregationType) + """

Examples:
  %(prog)s --metric-name Length --aggregation-type Average
  %(prog)s --aggregation-interval 1:30:0 --json
        """
    )

    # --------------------------------------------------------
    # Metric Options
    # --------------------------------------------------------
    metric_group = parser.add_argument_group("Metric Options")

    metric_group.add_argument("--metric-name", dest="name", help="Metric name")
    metric_group.add_argument("--subscription-id", help="Azure subscription id")
    metric_group.add_argument("--resource-group", dest="resource_group_name", help="Resource group name")
    metric_group.add_argument(
        "--resource-uri",
        metavar="NAMESPACE/TYPE/NAME",
        help="Resource identifier, e.g. Microsoft.Storage/storageAccounts/acct",
    )
    metric_group.add_argument("--aggregation-type", help="Aggregation mode (case-insensitive)")
    metric_group.add_argument(
        "--aggregation-interval",
        metavar="H:M:S",
        help="Query window length (default: 0:5:0)",
    )
    metric_group.add_argument("--filter", help="OData metric filter")

    # --------------------------------------------------------
    # Authentication Options
    # --------------------------------------------------------
    auth_group = parser.add_argument_group("Authentication Options")

    auth_group.add_argument("--tenant-id", help="Azure AD tenant id")
    auth_group.add_argument("--client-id", help="Azure AD application id")
    auth_group.add_argument(
        "--cloud",
        help="AzurePublicCloud, AzureChinaCloud or AzureUSGovernmentCloud",
    )

    # --------------------------------------------------------
    # Runtime Options
    # --------------------------------------------------------
    runtime_group = parser.add_argument_group("Runtime Options")

    runtime_group.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        metavar="SECONDS",
        help="Overall timeout for the poll (default: 30)",
    )
    runtime_group.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON",
    )
    runtime_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_metadata(
    args: argparse.Namespace,
    base: Optional[ScalerMetadata] = None,
) -> ScalerMetadata:
    """
    Apply command-line overrides on top of environment configuration.

    The client password is only ever read from the environment.
    """
    base = base if base is not None else ScalerMetadata.from_env()
    return base.merge(
        name=args.name,
        subscription_id=args.subscription_id,
        resource_group_name=args.resource_group_name,
        resource_uri=args.resource_uri,
        aggregation_type=args.aggregation_type,
        aggregation_interval=args.aggregation_interval,
        filter=args.filter,
        tenant_id=args.tenant_id,
        client_id=args.client_id,
        cloud=args.cloud,
    )


def print_result(result: SignalResult, as_json: bool = False) -> None:
    """Print a signal result."""
    if as_json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    elif result.ok:
        print(result.value)
    else:
        print(f"Error: {result.error}", file=sys.stderr)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(metadata: ScalerMetadata, timeout: float) -> SignalResult:
    """
    Run one poll.

    Args:
        metadata: Scaler configuration
        timeout: Overall timeout in seconds

    Returns:
        The signal result
    """
    credential = create_credential_provider(metadata)
    async with credential:
        async with AzureMonitorMetricsClient(
            credential,
            base_url=metadata.endpoints().resource_manager,
            timeout=timeout,
        ) as client:
            scaler = AzureMonitorScaler(client)
            return await asyncio.wait_for(scaler.get_signal(metadata), timeout=timeout)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.timeout <= 0:
        print("Error: --timeout must be positive", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        metadata = build_metadata(args)
        result = asyncio.run(async_main(metadata, args.timeout))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except asyncio.TimeoutError:
        print(f"Error: no signal within {args.timeout}s", file=sys.stderr)
        return EXIT_NO_SIGNAL
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130

    print_result(result, as_json=args.json)
    return EXIT_OK if result.ok else EXIT_NO_SIGNAL
