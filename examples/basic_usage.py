"""
Example: Using the DocumentDB client against a Cosmos DB account

Set the account endpoint and key first:
    export DOCUMENTDB_URL=https://<account>.documents.azure.com
    export DOCUMENTDB_MASTER_KEY=<base64 key>

Then run this script:
    python examples/basic_usage.py
"""

import asyncio

from documentdb import CancellationToken, ConfigManager, DocumentDB, Query, setup_logging


def print_section(title):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def log_charge(method, headers, context):
    """Response hook printing the request charge of every call."""
    charge = headers.get("x-ms-request-charge", "0")
    scope = context.collection or context.link
    print(f"   {method} {scope}: {charge} RU (retry {context.retry_count})")


async def main():
    config = ConfigManager().load()
    setup_logging(level=config.logging.level)
    config = config.model_copy(update={"response_hook": log_charge})

    async with DocumentDB.from_config(config) as api:
        print_section("Databases")
        database = await api.create_database_if_not_exists("example-db")
        print(f"Using database {database.id} ({database.self_link})")

        print_section("Collections")
        orders = await database.create_collection_if_not_exists("orders")
        print(f"Using collection {orders.id} ({orders.self_link})")

        print_section("Documents")
        created = await orders.create_document({"customer": "alice", "total": 42})
        print(f"Created document {created.id}")

        token = CancellationToken(timeout=30)
        docs, continuation = await orders.query_documents(
            Query.new("SELECT * FROM root r WHERE r.customer = @customer", {"@customer": "alice"}),
            target=dict,
            cancellation=token,
        )
        print(f"Found {len(docs)} document(s), continuation={continuation!r}")

        await orders.delete_document(created.self_link)
        print(f"Deleted document {created.id}")


if __name__ == "__main__":
    asyncio.run(main())
