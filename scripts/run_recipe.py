"""Run one recipe against the configured org and print the records as JSON.

Usage:
    python scripts/run_recipe.py custom-fields --param sobject=Account
    python scripts/run_recipe.py user-roles --clean
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from org_check.config.settings import Settings
from org_check.factory.data_factory import DataFactory
from org_check.models.serialization import to_payload
from org_check.observability.logger import setup_logging
from org_check.pipeline.dataset_manager import DatasetManager
from org_check.pipeline.recipe_manager import RecipeManager
from org_check.salesforce.manager import SalesforceManager
from org_check.salesforce.transport import HttpxSalesforceTransport
from org_check.scoring.rules import current_api_version
from org_check.storage.cache import DataCacheManager
from org_check.storage.sqlite_storage import SQLiteStorage


def parse_parameters(values: list[str]) -> dict[str, str]:
    parameters: dict[str, str] = {}
    for value in values:
        key, sep, item = value.partition("=")
        if not sep:
            raise SystemExit(f"Invalid parameter '{value}', expected key=value")
        parameters[key.strip()] = item.strip()
    return parameters


async def main(alias: str, parameters: dict[str, str], clean: bool) -> None:
    settings = Settings()
    setup_logging(settings.log_level, json_logs=False)

    Path(settings.cache_db_path).parent.mkdir(parents=True, exist_ok=True)
    storage = SQLiteStorage(settings.cache_db_path)
    await storage.initialize()
    cache = DataCacheManager(storage, ttl_seconds=settings.cache_ttl_seconds)

    transport = HttpxSalesforceTransport(
        instance_url=settings.instance_url,
        access_token=settings.access_token,
        api_version=settings.api_version or current_api_version(date.today()),
        timeout=settings.http_timeout_seconds,
    )
    sfdc_manager = SalesforceManager(transport, settings)
    recipe_manager = RecipeManager(DatasetManager(sfdc_manager, cache, DataFactory()))

    try:
        if clean:
            await recipe_manager.clean(alias, parameters)
        records = await recipe_manager.run(alias, parameters)
    finally:
        await transport.close()

    print(json.dumps(to_payload(records), indent=2, default=str))
    usage = sfdc_manager.daily_api_request_limit_information
    print(f"\nDaily API usage: {usage.current_usage_percentage}% ({usage.zone})", file=sys.stderr)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run an Org Check recipe")
    parser.add_argument("alias", help="Recipe alias, e.g. custom-fields")
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        help="Global parameter as key=value (sobject, namespace, sobjecttype)",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Drop the cached datasets of the recipe before running it",
    )
    args = parser.parse_args()
    asyncio.run(main(args.alias, parse_parameters(args.param), args.clean))
