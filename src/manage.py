"""Storefront database management CLI.

Creates and drops database schemas and seeds a starter catalogue.

Usage:
    python src/manage.py setup-db        # Create all tables
    python src/manage.py drop-db         # Drop all tables
    python src/manage.py seed-catalogue  # Add the sample sarees
"""

import argparse
import sys

# Sample sarees, prices in paise. Stock is spread across sizes.
SAMPLE_PRODUCTS = [
    {
        "name": "Cotton Handloom Saree",
        "price_minor": 149900,
        "images": ["https://images.unsplash.com/photo-1621784563330-9b8b9e621f94?w=600&h=800&fit=crop"],
        "sizes": {"S": 10, "M": 15, "L": 10, "XL": 5},
    },
    {
        "name": "Banarasi Silk Saree",
        "price_minor": 599900,
        "images": ["https://images.unsplash.com/photo-1584917865442-de89df76afd3?w=600&h=800&fit=crop"],
        "sizes": {"S": 5, "M": 8, "L": 5, "XL": 2},
    },
    {
        "name": "Designer Party Saree",
        "price_minor": 299900,
        "images": ["https://images.unsplash.com/photo-1609743522656-046eb3d72b6c?w=600&h=800&fit=crop"],
        "sizes": {"S": 5, "M": 10, "L": 7, "XL": 3},
    },
]


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _domain()
    print("Creating storefront database schema...")
    providers = setup_db(domain)
    print(f"  Schema ready for: {', '.join(providers) or 'no SQL providers'}.")
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _domain()
    print("Dropping storefront database schema...")
    providers = drop_db(domain)
    print(f"  Schema dropped for: {', '.join(providers) or 'no SQL providers'}.")
    print("Done.")


def seed_catalogue(products=None):
    """Add sample products. Returns the ids of the created products."""
    from storefront.catalogue.product import StockedProduct

    domain = _domain()
    created = []
    with domain.domain_context():
        repo = domain.repository_for(StockedProduct)
        for entry in products or SAMPLE_PRODUCTS:
            product = StockedProduct.create(
                name=entry["name"],
                price_minor=entry["price_minor"],
                sizes=entry["sizes"],
                images=entry.get("images", ()),
            )
            repo.add(product)
            created.append(str(product.id))
            print(f"  {product.name}: {product.id} ({product.stock} in stock)")
    print("Done.")
    return created


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed-catalogue", help="Add the sample saree catalogue")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-catalogue":
        seed_catalogue()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
