"""Creates the practice schema and fills it with randomized sample rows."""

from __future__ import annotations

import logging
import random

from src.core.config import DatabaseSettings
from src.integrations.sqlite_store import SQLiteStore

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE users (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  email TEXT UNIQUE NOT NULL,
  age INTEGER,
  created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE categories (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL
);

CREATE TABLE products (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  description TEXT,
  price REAL NOT NULL,
  category_id INTEGER,
  created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (category_id) REFERENCES categories(id)
);

CREATE TABLE orders (
  id INTEGER PRIMARY KEY,
  user_id INTEGER NOT NULL,
  order_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
  status TEXT DEFAULT 'pending',
  total_amount REAL NOT NULL,
  FOREIGN KEY (user_id) REFERENCES users(id)
);

CREATE TABLE order_items (
  id INTEGER PRIMARY KEY,
  order_id INTEGER NOT NULL,
  product_id INTEGER NOT NULL,
  quantity INTEGER NOT NULL,
  price REAL NOT NULL,
  FOREIGN KEY (order_id) REFERENCES orders(id),
  FOREIGN KEY (product_id) REFERENCES products(id)
);

CREATE TABLE departments (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  location TEXT
);

CREATE TABLE employees (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  email TEXT UNIQUE NOT NULL,
  department_id INTEGER,
  salary REAL,
  hire_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
  FOREIGN KEY (department_id) REFERENCES departments(id)
);
"""

SEEDED_TABLES: tuple[str, ...] = (
    "users",
    "categories",
    "products",
    "orders",
    "order_items",
    "departments",
    "employees",
)

CATEGORIES: tuple[str, ...] = (
    "Electronics",
    "Clothing",
    "Books",
    "Home & Kitchen",
    "Sports & Outdoors",
)

DEPARTMENTS: tuple[tuple[str, str], ...] = (
    ("Engineering", "Building A"),
    ("Marketing", "Building B"),
    ("Sales", "Building C"),
    ("Human Resources", "Building A"),
    ("Customer Support", "Building D"),
)

ORDER_STATUSES: tuple[str, ...] = ("pending", "processing", "shipped", "delivered", "cancelled")


def _money(rng: random.Random, low: float, high: float) -> float:
    return round(low + rng.random() * (high - low), 2)


def seed_database(
    store: SQLiteStore,
    settings: DatabaseSettings | None = None,
    rng: random.Random | None = None,
) -> dict[str, int]:
    """Create every table and insert sample rows; return per-table row counts."""

    settings = settings or DatabaseSettings()
    rng = rng or random.Random(settings.seed)
    LOGGER.info("Initializing database with tables and sample data")

    store.execute_script(SCHEMA_SQL)

    for name in CATEGORIES:
        store.insert("INSERT INTO categories (name) VALUES (?)", (name,))

    for index in range(1, settings.users + 1):
        store.insert(
            "INSERT INTO users (name, email, age) VALUES (?, ?, ?)",
            (f"User {index}", f"user{index}@example.com", rng.randint(18, 67)),
        )

    for index in range(1, settings.products + 1):
        store.insert(
            "INSERT INTO products (name, description, price, category_id) VALUES (?, ?, ?, ?)",
            (
                f"Product {index}",
                f"Description for product {index}",
                _money(rng, 10, 1000),
                rng.randint(1, len(CATEGORIES)),
            ),
        )

    for name, location in DEPARTMENTS:
        store.insert("INSERT INTO departments (name, location) VALUES (?, ?)", (name, location))

    for index in range(1, settings.employees + 1):
        store.insert(
            "INSERT INTO employees (name, email, department_id, salary) VALUES (?, ?, ?, ?)",
            (
                f"Employee {index}",
                f"employee{index}@example.com",
                rng.randint(1, len(DEPARTMENTS)),
                _money(rng, 30000, 100000),
            ),
        )

    # Orders and items reference users/products, so skip them when either is empty.
    if settings.users > 0 and settings.products > 0:
        for _ in range(settings.orders):
            order_id = store.insert(
                "INSERT INTO orders (user_id, status, total_amount) VALUES (?, ?, ?)",
                (
                    rng.randint(1, settings.users),
                    rng.choice(ORDER_STATUSES),
                    _money(rng, 50, 500),
                ),
            )
            for _ in range(rng.randint(1, max(settings.max_items_per_order, 1))):
                store.insert(
                    "INSERT INTO order_items (order_id, product_id, quantity, price) VALUES (?, ?, ?, ?)",
                    (
                        order_id,
                        rng.randint(1, settings.products),
                        rng.randint(1, 5),
                        _money(rng, 10, 200),
                    ),
                )

    counts = {table: store.count(table) for table in SEEDED_TABLES}
    LOGGER.info(
        "Initialized with: %s users, %s products, %s orders, %s employees",
        counts["users"],
        counts["products"],
        counts["orders"],
        counts["employees"],
    )
    return counts
