"""
Shared fixtures for analytics pipeline tests
"""

import pytest
from sqlalchemy import create_engine, text

SALES_CSV = """product,region,sales,date
Widget,East,100,2023-11-15
Gadget,West,250,2024-01-10
Widget,West,150,2024-02-20
Gizmo,East,300,2023-12-05
Gadget,North,50,2022-06-30
"""


@pytest.fixture
def sales_csv(tmp_path):
    """Five sales rows, two of them dated 2024"""
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV)
    return str(path)


@pytest.fixture
def write_csv(tmp_path):
    """Write arbitrary CSV text and return its path"""
    def _write(content: str, name: str = "data.csv") -> str:
        path = tmp_path / name
        path.write_text(content)
        return str(path)
    return _write


@pytest.fixture
def orders_db(tmp_path):
    """SQLite database URL with an orders table of four rows"""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = create_engine(url)
    with engine.begin() as connection:
        connection.execute(text(
            "CREATE TABLE orders (id INTEGER PRIMARY KEY, region VARCHAR(20), amount REAL, order_date DATE)"
        ))
        connection.execute(text(
            "INSERT INTO orders VALUES "
            "(1, 'East', 100.0, '2023-11-15'), (2, 'West', 250.0, '2024-01-10'), "
            "(3, 'West', 150.0, '2024-02-20'), (4, 'East', 300.0, '2023-12-05')"
        ))
    engine.dispose()
    return url
