# Unless explicitly stated otherwise all files in this repository are licensed under the Apache-2 License.
#
# This product includes software developed at Datadog (https://www.datadoghq.com/) Copyright 2025 Datadog, Inc.

# stdlib
from dataclasses import dataclass
from typing import Any

# 3p
from jsonschema import ValidationError, validate

# project
from config.env import DEFAULT_POLLING_INTERVAL_SECONDS
from tasks.common import (
    ConfigurationError,
    get_oidc_resource_group_name,
    get_storage_account_name,
    validate_storage_account_name,
)

REQUIRED_STRING: dict[str, Any] = {"type": "string", "minLength": 1}

DELETE_OPTIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": REQUIRED_STRING,
        "region": REQUIRED_STRING,
        "subscription_id": REQUIRED_STRING,
        "polling_interval": {"type": "number", "exclusiveMinimum": 0},
        "deadline": {"oneOf": [{"type": "null"}, {"type": "number", "exclusiveMinimum": 0}]},
    },
    "required": ["name", "region", "subscription_id"],
}


@dataclass(frozen=True)
class DeleteOptions:
    name: str
    "user-defined name for all the resources created during provisioning"
    region: str
    subscription_id: str
    oidc_resource_group_name: str
    storage_account_name: str
    delete_oidc_resource_group: bool = False
    "delete the whole OIDC resource group instead of the individual resources within it"
    dry_run: bool = False
    polling_interval: float = DEFAULT_POLLING_INTERVAL_SECONDS
    deadline: float | None = None


def resolve_delete_options(
    name: str,
    region: str,
    subscription_id: str,
    *,
    oidc_resource_group_name: str = "",
    storage_account_name: str = "",
    delete_oidc_resource_group: bool = False,
    dry_run: bool = False,
    polling_interval: float = DEFAULT_POLLING_INTERVAL_SECONDS,
    deadline: float | None = None,
) -> DeleteOptions:
    """Fill in the derived resource names and validate everything before any Azure call is made"""
    try:
        validate(
            instance={
                "name": name,
                "region": region,
                "subscription_id": subscription_id,
                "polling_interval": polling_interval,
                "deadline": deadline,
            },
            schema=DELETE_OPTIONS_SCHEMA,
        )
    except ValidationError as e:
        field = ".".join(map(str, e.absolute_path)) or "options"
        raise ConfigurationError(f"Invalid value for {field}: {e.message}") from e

    oidc_resource_group_name = get_oidc_resource_group_name(name, oidc_resource_group_name)
    storage_account_name = get_storage_account_name(name, storage_account_name)
    validate_storage_account_name(storage_account_name)

    return DeleteOptions(
        name=name,
        region=region,
        subscription_id=subscription_id,
        oidc_resource_group_name=oidc_resource_group_name,
        storage_account_name=storage_account_name,
        delete_oidc_resource_group=delete_oidc_resource_group,
        dry_run=dry_run,
        polling_interval=polling_interval,
        deadline=deadline,
    )
