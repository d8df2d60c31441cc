"""
Sales Warehouse Dataset Generator
Generates fact_sales, dim_customers and dim_products CSVs using vectorized operations
"""

import argparse
import random
from datetime import date, timedelta
from pathlib import Path

import numpy as np
import polars as pl
from faker import Faker

fake = Faker()
random.seed(42)
np.random.seed(42)
Faker.seed(42)

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "warehouse"

CATEGORIES = {
    "Bikes": ["Mountain Bikes", "Road Bikes", "Touring Bikes"],
    "Components": ["Handlebars", "Wheels", "Frames", "Chains"],
    "Clothing": ["Jerseys", "Caps", "Gloves", "Socks"],
    "Accessories": ["Helmets", "Bottles and Cages", "Tires and Tubes"],
}

# ==========================================
# CUSTOMERS
# ==========================================
def generate_customers(n=5000):
    print(f"📊 Generating {n:,} customers...")

    birth_start = date(1940, 1, 1)
    birth_offsets = np.random.randint(0, 365 * 65, n)

    df = pl.DataFrame({
        "customer_key": np.arange(1, n + 1),
        "customer_number": [f"AW{i:08d}" for i in range(11000, 11000 + n)],
        "first_name": [fake.first_name() for _ in range(n)],
        "last_name": [fake.last_name() for _ in range(n)],
        "country": np.random.choice(["United States", "Australia", "United Kingdom", "Germany", "France", "Canada"], n),
        "marital_status": np.random.choice(["Married", "Single"], n),
        "gender": np.random.choice(["Male", "Female", "n/a"], n, p=[0.49, 0.49, 0.02]),
        "birthdate": [birth_start + timedelta(days=int(d)) for d in birth_offsets],
    })

    df.write_csv(OUTPUT_DIR / "dim_customers.csv")
    print(f"   ✅ dim_customers.csv: {n:,} rows")
    return df

# ==========================================
# PRODUCTS
# ==========================================
def generate_products(n=300):
    print(f"📊 Generating {n:,} products...")

    categories = np.random.choice(list(CATEGORIES), n, p=[0.3, 0.3, 0.2, 0.2])
    subcategories = [random.choice(CATEGORIES[c]) for c in categories]

    df = pl.DataFrame({
        "product_key": np.arange(1, n + 1),
        "product_number": [f"PR-{i:05d}" for i in range(n)],
        "product_name": [f"{fake.word().title()} {sub} {i}" for i, sub in enumerate(subcategories)],
        "category": categories,
        "subcategory": subcategories,
        "cost": np.round(np.random.lognormal(4.5, 1.2, n), 0),
        "product_line": np.random.choice(["Road", "Mountain", "Touring", "Other Sales"], n),
    })

    df.write_csv(OUTPUT_DIR / "dim_products.csv")
    print(f"   ✅ dim_products.csv: {n:,} rows")
    return df

# ==========================================
# SALES (VECTORIZED)
# ==========================================
def generate_sales(n=60000, customer_keys=None, products_df=None, missing_date_rate=0.001):
    print(f"📊 Generating {n:,} sales lines (vectorized)...")

    start = date(2010, 12, 29)
    offsets = np.random.randint(0, 365 * 3, n)
    order_dates = [start + timedelta(days=int(d)) for d in offsets]
    # A few lines without an order date, as in the source system
    for i in np.where(np.random.random(n) < missing_date_rate)[0]:
        order_dates[i] = None

    product_idx = np.random.randint(0, len(products_df), n)
    prices = np.round(products_df["cost"].to_numpy()[product_idx] * np.random.uniform(1.2, 1.8, n), 0)
    quantities = np.random.choice([1, 1, 1, 2, 3], n)

    df = pl.DataFrame({
        "order_number": [f"SO{43697 + i // 2}" for i in range(n)],
        "product_key": products_df["product_key"].to_numpy()[product_idx],
        "customer_key": np.random.choice(customer_keys, n),
        "order_date": order_dates,
        "sales_amount": prices * quantities,
        "quantity": quantities,
        "price": prices,
    })

    df.write_csv(OUTPUT_DIR / "fact_sales.csv")
    print(f"   ✅ fact_sales.csv: {n:,} rows")
    return df

# ==========================================
# MAIN
# ==========================================
def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic sales warehouse")
    parser.add_argument("--customers", type=int, default=5000)
    parser.add_argument("--products", type=int, default=300)
    parser.add_argument("--sales", type=int, default=60000)
    args = parser.parse_args()

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("🛒 Sales Warehouse Dataset Generator")
    print("=" * 60 + "\n")

    customers_df = generate_customers(args.customers)
    products_df = generate_products(args.products)
    generate_sales(args.sales, customers_df["customer_key"].to_numpy(), products_df)

    print("\n" + "=" * 60)
    print("✅ Dataset Generation Complete!")
    print("=" * 60)
    print(f"\n📁 Output: {OUTPUT_DIR}\n")


if __name__ == "__main__":
    main()
