# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# usage: oidc-identity-cleanup delete [-h] --name NAME --region REGION --subscription-id SUBSCRIPTION_ID
#                                     [--delete-oidc-resource-group] [--storage-account-name STORAGE_ACCOUNT_NAME]
#                                     [--oidc-resource-group-name OIDC_RESOURCE_GROUP_NAME] [--dry-run]
#                                     [--polling-interval SECONDS] [--deadline SECONDS]
#
# Delete OIDC issuer and managed identities

# stdlib
import argparse
from asyncio import run
from collections.abc import Sequence
from logging import getLogger

# project
from config.env import get_delete_deadline, get_polling_interval
from config.options import resolve_delete_options
from tasks.common import IdentityCleanupError
from tasks.delete_task import DeleteTask
from tasks.task import configure_logging, task_main

log = getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oidc-identity-cleanup",
        description="Manage the Azure resources backing workload identity federation",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    delete_parser = subparsers.add_parser(
        "delete",
        help="Delete OIDC issuer and managed identities",
        description="Delete the storage account and user-assigned managed identities within the OIDC resource group. "
        "The OIDC resource group is deleted instead when --delete-oidc-resource-group is provided.",
    )

    # Required
    delete_parser.add_argument(
        "--name", required=True, help="User-defined name for all previously created Azure resources"
    )
    delete_parser.add_argument(
        "--region", required=True, help="Azure region in which to delete user-assigned managed identities"
    )
    delete_parser.add_argument(
        "--subscription-id",
        required=True,
        help="Azure Subscription ID within which to create and scope the access of managed identities",
    )

    # Optional
    delete_parser.add_argument(
        "--delete-oidc-resource-group",
        action="store_true",
        help="Delete the OIDC resource group identified by --oidc-resource-group-name, or derived from --name "
        "when --oidc-resource-group-name is not provided, along with everything within it",
    )
    delete_parser.add_argument(
        "--storage-account-name",
        default="",
        help="The name of the Azure storage account to delete, defaults to --name. The storage account must exist "
        "within the OIDC resource group. Azure storage account names must be between 3 and 24 characters in length "
        "and may contain numbers and lowercase letters only.",
    )
    delete_parser.add_argument(
        "--oidc-resource-group-name",
        default="",
        help="The Azure resource group in which to delete user-assigned managed identities, defaults to "
        "<name>-oidc. This resource group will not be deleted unless --delete-oidc-resource-group is provided.",
    )
    delete_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Skip deleting objects and display actions that would have been taken",
    )
    delete_parser.add_argument(
        "--polling-interval",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Seconds between status checks while the OIDC resource group is deleted (default: 10)",
    )
    delete_parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Give up waiting for the OIDC resource group deletion after this many seconds (default: no deadline)",
    )
    return parser


def delete(args: argparse.Namespace) -> None:
    options = resolve_delete_options(
        args.name,
        args.region,
        args.subscription_id,
        oidc_resource_group_name=args.oidc_resource_group_name,
        storage_account_name=args.storage_account_name,
        delete_oidc_resource_group=args.delete_oidc_resource_group,
        dry_run=args.dry_run,
        polling_interval=get_polling_interval() if args.polling_interval is None else args.polling_interval,
        deadline=get_delete_deadline() if args.deadline is None else args.deadline,
    )
    run(task_main(DeleteTask, options))


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging()
    try:
        match args.command:
            case "delete":
                delete(args)
    except IdentityCleanupError as e:
        log.error("%s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":  # pragma: no cover
    main()
