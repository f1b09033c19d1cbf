#!/usr/bin/env python3
"""
Product Seeder for the Storefront Catalog

Loads products from a JSON file (a list of product payloads, the same
shape POST /api/products accepts) and creates them through the catalog,
so validation, image checks, currency conversion and featured ordering
all apply exactly as they do for API requests.

Usage:
    python scripts/seed_products.py data/products.json
    python scripts/seed_products.py data/products.json --dry-run

Environment:
    MONGODB_URI / MONGODB_DB select the target database
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.api.dependencies import get_converter
from app.core.config import settings
from app.core.errors import CatalogError, InvalidImageError, ValidationError
from app.infrastructure.mongo import MongoProductStore, close_mongo_client
from app.services.catalog import ProductCatalog
from app.services.images import handle_images
from app.services.validation import build_product_input


def load_payloads(path: Path) -> List[Any]:
    """Read the product list from a JSON file."""
    with open(path, encoding="utf-8") as source_file:
        data = json.load(source_file)
    if isinstance(data, dict):
        data = data.get("products", [])
    if not isinstance(data, list):
        raise ValueError("expected a JSON list of products or {\"products\": [...]}")
    return data


def describe_failure(exc: CatalogError) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(f"{e.field}: {e.message}" for e in exc.errors) or exc.message
    if isinstance(exc, InvalidImageError):
        return "; ".join(f"image[{i.index}]: {i.reason}" for i in exc.issues)
    return exc.message


def check_only(payloads: List[Any]) -> int:
    """Validate every payload without touching the database."""
    failures = 0
    for position, payload in enumerate(payloads):
        try:
            data = build_product_input(payload)
            handle_images(data.images)
            print(f"   [OK] #{position} {data.name}")
        except (ValidationError, InvalidImageError) as e:
            failures += 1
            print(f"   [FAIL] #{position}: {describe_failure(e)}")
    return failures


async def seed(payloads: List[Any]) -> int:
    """Create every payload, returning the number of failures."""
    catalog = ProductCatalog(
        MongoProductStore.from_settings(),
        get_converter(),
        canonical_currency=settings.canonical_currency,
        search_limit=settings.search_result_limit,
    )
    failures = 0
    try:
        for position, payload in enumerate(payloads):
            try:
                product = await catalog.create_product(payload)
                print(f"   [OK] #{position} {product.name} -> {product.id} ({product.price} {catalog.canonical_currency})")
            except CatalogError as e:
                failures += 1
                print(f"   [FAIL] #{position}: {describe_failure(e)}")
    finally:
        await close_mongo_client()
    return failures


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the product catalog from a JSON file")
    parser.add_argument("path", type=Path, help="JSON file with a list of products")
    parser.add_argument("--dry-run", action="store_true", help="Validate only; write nothing")
    args = parser.parse_args()

    print("=" * 60)
    print("Storefront Catalog - Product Seeder")
    print("=" * 60)
    print(f"\nDatabase: {settings.mongodb_db}")
    print(f"Canonical currency: {settings.canonical_currency}")
    print()

    if not args.path.exists():
        print(f"[ERROR] File not found: {args.path}")
        return 1

    payloads = load_payloads(args.path)
    print(f"[LOAD] {len(payloads)} products from {args.path}")

    if args.dry_run:
        failures = check_only(payloads)
    else:
        failures = asyncio.run(seed(payloads))

    print("\n" + "=" * 60)
    if failures:
        print(f"[DONE] {len(payloads) - failures} succeeded, {failures} failed")
    else:
        print(f"[SUCCESS] {len(payloads)} products {'validated' if args.dry_run else 'created'}")
    print("=" * 60)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
