from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Protocol

import aiosqlite

from daily_wisdom.models.article import Article, Source
from daily_wisdom.models.languages import BASE_LANGUAGE
from daily_wisdom.utils.dates import DateInput, normalize_date


class ArticleRepository(Protocol):
    """
    Persistence boundary for articles, keyed by (date, language).
    """

    async def get_article(self, date: DateInput, language: str = BASE_LANGUAGE) -> Optional[Article]: ...

    async def save_article(self, article: Article) -> None:
        """Upsert by (date, language)."""
        ...

    async def has_article_for_date(self, date: DateInput) -> bool:
        """Whether the base-language article exists for the date."""
        ...

    async def has_translation(self, date: DateInput, language: str) -> bool: ...

    async def reset_database(self) -> None:
        """Destructive full wipe."""
        ...

    async def get_all_available_dates(self) -> List[str]: ...


class SQLiteArticleRepository:
    """
    aiosqlite-backed article storage.

    One `day` row per calendar date and one `articles` row per
    (day, language). Each call opens its own connection.
    """

    def __init__(self, db_path: str = "data/daily_wisdom.db"):
        self.db_path = db_path
        self.logger = logging.getLogger(__name__)
        # Call await initialize_db() after constructing.

    async def initialize_db(self) -> None:
        """Create tables and indexes."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS day (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT UNIQUE NOT NULL,
                    year INTEGER NOT NULL,
                    month INTEGER NOT NULL,
                    day INTEGER NOT NULL
                );
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    day_id INTEGER NOT NULL REFERENCES day(id) ON DELETE CASCADE,
                    language TEXT NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    sources TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE (day_id, language)
                );
                """
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_articles_language ON articles(language);"
            )
            await db.commit()
        self.logger.info(f"Article database ready at {self.db_path}")

    async def get_article(self, date: DateInput, language: str = BASE_LANGUAGE) -> Optional[Article]:
        day = normalize_date(date)
        if not day:
            return None

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT d.date AS date, a.language AS language, a.title AS title,
                       a.content AS content, a.sources AS sources
                FROM articles a JOIN day d ON d.id = a.day_id
                WHERE d.date = ? AND a.language = ?
                """,
                (day, language),
            ) as cur:
                row = await cur.fetchone()

        if row is None:
            return None
        return self._row_to_article(row)

    async def save_article(self, article: Article) -> None:
        day = normalize_date(article.date)
        if not day:
            raise ValueError(f"Invalid article date: {article.date!r}")

        year, month, dom = (int(part) for part in day.split("-"))
        sources_json = json.dumps([s.to_dict() for s in article.sources], ensure_ascii=False)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "INSERT INTO day (date, year, month, day) VALUES (?, ?, ?, ?) ON CONFLICT(date) DO NOTHING",
                (day, year, month, dom),
            )
            async with db.execute("SELECT id FROM day WHERE date = ?", (day,)) as cur:
                (day_id,) = await cur.fetchone()

            await db.execute(
                """
                INSERT INTO articles (day_id, language, title, content, sources)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(day_id, language) DO UPDATE SET
                    title = excluded.title,
                    content = excluded.content,
                    sources = excluded.sources,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (day_id, article.language, article.title, article.content, sources_json),
            )
            await db.commit()
        self.logger.debug(f"Saved article {day}/{article.language}")

    async def has_article_for_date(self, date: DateInput) -> bool:
        return await self.has_translation(date, BASE_LANGUAGE)

    async def has_translation(self, date: DateInput, language: str) -> bool:
        day = normalize_date(date)
        if not day:
            return False

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                """
                SELECT COUNT(*) FROM articles a JOIN day d ON d.id = a.day_id
                WHERE d.date = ? AND a.language = ?
                """,
                (day, language),
            ) as cur:
                (count,) = await cur.fetchone()
        return count > 0

    async def get_all_available_dates(self) -> List[str]:
        """Dates with a base article, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                """
                SELECT d.date FROM day d JOIN articles a ON a.day_id = d.id
                WHERE a.language = ?
                ORDER BY d.date DESC
                """,
                (BASE_LANGUAGE,),
            ) as cur:
                rows = await cur.fetchall()
        return [r[0] for r in rows]

    async def reset_database(self) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM articles")
            await db.execute("DELETE FROM day")
            await db.commit()
        self.logger.warning("Article database reset: all days and articles deleted")

    async def close(self) -> None:
        # Connections are opened per call; nothing is held between calls
        return None

    @staticmethod
    def _row_to_article(row: aiosqlite.Row) -> Article:
        language = row["language"]
        date = row["date"]
        try:
            raw_sources = json.loads(row["sources"] or "[]")
        except json.JSONDecodeError:
            raw_sources = []
        return Article(
            id=date if language == BASE_LANGUAGE else f"{date}:{language}",
            date=date,
            title=row["title"],
            content=row["content"],
            language=language,
            is_translated=language != BASE_LANGUAGE,
            sources=[Source.from_dict(s) for s in raw_sources if s.get("uri")],
        )
