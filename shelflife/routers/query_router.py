import logging

from fastapi import APIRouter, HTTPException

from shelflife.db.session import SessionLocal, engine, settings
from shelflife.schemas import QueryRequest
from shelflife.services import nl_query

logger = logging.getLogger(__name__)

router = APIRouter()

DIALECT_NAMES = {"postgresql": "PostgreSQL", "sqlite": "SQLite", "mysql": "MySQL"}

def answer_question(question: str) -> dict:
    """Translate `question` to SQL and run it. Shared by the API and the query page."""
    question = question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Query is required")
    if not settings.GEMINI_API_KEY:
        raise HTTPException(status_code=503, detail="Gemini API key not configured")

    dialect = DIALECT_NAMES.get(engine.dialect.name, engine.dialect.name)
    try:
        sql = nl_query.translate_to_sql(
            question,
            settings.GEMINI_API_KEY,
            settings.GEMINI_MODEL,
            timeout=settings.GEMINI_TIMEOUT,
            dialect=dialect,
        )
    except nl_query.TranslationError as e:
        raise HTTPException(status_code=502, detail=f"Failed to convert query to SQL: {e}")

    db = SessionLocal()
    try:
        results = nl_query.execute_sql(db, sql)
    except nl_query.UnsafeQueryError as e:
        logger.warning("Refused generated SQL %r: %s", sql, e)
        raise HTTPException(status_code=400, detail=f"{e}. Generated SQL: {sql}")
    except nl_query.QueryExecutionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        db.close()

    return {
        "ok": True,
        "original_query": question,
        "sql_query": sql,
        "results": results,
        "row_count": len(results),
        "message": "Query executed successfully",
    }

@router.post("/query")
def post_query(body: QueryRequest):
    return answer_question(body.query)
