from __future__ import annotations

from pathlib import Path

from src.hr_services.hr_services.database.bootstrap import iter_sql_statements


def test_split_ignores_semicolons_inside_literals():
    sql = "INSERT INTO t VALUES ('a;b'); INSERT INTO t VALUES (\"c;d\");\nSELECT 'it\\'s;ok'"
    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 'it\\'s;ok'",
    ]


def test_schema_file_declares_unique_date_per_employee():
    schema = (Path(__file__).resolve().parents[2] / "database" / "schema.sql").read_text(encoding="utf-8")
    statements = list(iter_sql_statements(schema))
    promotions = next(s for s in statements if "CREATE TABLE IF NOT EXISTS hr_employee_promotions" in s)
    assert "UNIQUE KEY uq_promotion_employee_date (employee_id, effective_date)" in promotions
