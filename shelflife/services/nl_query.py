"""Natural-language questions -> SQL via the Gemini generateContent API.

The generated statement is executed as-is against the application database, so only a
single read-only SELECT/WITH statement is accepted.
"""

import logging
import re

import requests
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

SCHEMA_PROMPT = """
You are a SQL expert for a warehouse management system. Convert the following human language query to SQL.

Database schema:
- warehouses: id, name, location, address, city, country, total_capacity, used_capacity,
  manager_name, manager_email, manager_phone, created_at, updated_at
- products: id, sku, name, description, category, brand, cost_price, selling_price,
  current_stock, min_stock_level, max_stock_level, shelf_life_days, received_date,
  expiry_date, days_until_expiry, dead_stock_risk, status, last_prediction, warehouse_id,
  created_at, updated_at
- orders: id, order_number, product_id, warehouse_id, quantity, unit_cost, total_cost,
  shelf_life_days, expected_expiry, status, requested_date, ml_recommended_date, ml_confidence
- alerts: id, title, message, type, priority, is_read, is_resolved, resolved_at, resolved_by,
  product_id, warehouse_id, order_id, created_at
- recommendations: id, product_id, type, title, description, suggested_action,
  expected_impact, confidence, urgency, is_implemented, implemented_at, created_at
- sales: id, product_id, quantity_sold, unit_price, total_revenue, profit, customer_name,
  customer_email, sale_date

Relationships:
- products.warehouse_id -> warehouses.id
- orders.product_id -> products.id, orders.warehouse_id -> warehouses.id
- alerts.product_id -> products.id, alerts.warehouse_id -> warehouses.id, alerts.order_id -> orders.id
- recommendations.product_id -> products.id
- sales.product_id -> products.id

Enum values (stored as text):
- products.status: 'HEALTHY', 'AT_RISK', 'DEAD_STOCK', 'EXPIRED'
- orders.status: 'PENDING', 'APPROVED', 'ORDERED', 'SHIPPED', 'DELIVERED', 'CANCELLED'
- alerts.priority, recommendations.urgency: 'LOW', 'MEDIUM', 'HIGH', 'CRITICAL'

Human Query: "{question}"

Return ONLY one {dialect} SELECT statement, no explanations or additional text.
"""

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
_READ_ONLY = re.compile(r"^(select|with)\b", re.IGNORECASE)
_WRITE_KEYWORDS = re.compile(
    r"\b(insert|update|delete|drop|alter|create|truncate|grant|revoke|attach|pragma|vacuum)\b",
    re.IGNORECASE,
)


class TranslationError(Exception):
    pass


class UnsafeQueryError(Exception):
    pass


class QueryExecutionError(Exception):
    pass


def build_prompt(question: str, dialect: str = "PostgreSQL") -> str:
    return SCHEMA_PROMPT.format(question=question.replace('"', "'"), dialect=dialect)

def translate_to_sql(question: str, api_key: str, model: str, timeout: float = 30.0,
                     dialect: str = "PostgreSQL") -> str:
    payload = {"contents": [{"parts": [{"text": build_prompt(question, dialect)}]}]}
    try:
        response = requests.post(
            GEMINI_URL.format(model=model),
            params={"key": api_key},
            json=payload,
            timeout=timeout,
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.error("Gemini API error: %s", e)
        raise TranslationError(f"Gemini API error: {e}") from e
    except ValueError as e:
        logger.error("Gemini API returned invalid JSON: %s", e)
        raise TranslationError("Gemini API returned invalid JSON") from e

    try:
        sql = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        logger.error("Gemini API response had no candidates: %s", data)
        raise TranslationError("Gemini API returned no SQL")

    sql = clean_sql(sql)
    if not sql:
        raise TranslationError("Gemini API returned no SQL")
    logger.info("Generated SQL: %s", sql)
    return sql

def clean_sql(raw: str) -> str:
    """Strip Markdown fences and a trailing semicolon from model output."""
    sql = _FENCE.sub("", raw.strip()).strip()
    return sql.rstrip(";").strip()

def ensure_read_only(sql: str) -> None:
    if ";" in sql:
        raise UnsafeQueryError("Only a single SQL statement is allowed")
    if not _READ_ONLY.match(sql):
        raise UnsafeQueryError("Only SELECT queries can be executed")
    if _WRITE_KEYWORDS.search(sql):
        raise UnsafeQueryError("Query contains a data-modifying keyword")

def column_labels(keys) -> list[str]:
    """Result column names, with repeats suffixed (`name`, `name_2`) so no column is dropped."""
    labels, seen = [], {}
    for key in keys:
        seen[key] = seen.get(key, 0) + 1
        label = key if seen[key] == 1 else f"{key}_{seen[key]}"
        while label in seen and label != key:
            seen[key] += 1
            label = f"{key}_{seen[key]}"
        seen.setdefault(label, 1)
        labels.append(label)
    return labels

def execute_sql(db: Session, sql: str) -> list[dict]:
    ensure_read_only(sql)
    try:
        result = db.execute(text(sql))
        labels = column_labels(result.keys())
        rows = [dict(zip(labels, r)) for r in result.all()]
    except SQLAlchemyError as e:
        logger.error("SQL execution error for %r: %s", sql, e)
        raise QueryExecutionError(f"SQL execution error: {getattr(e, 'orig', e)}") from e
    finally:
        db.rollback()
    return rows
