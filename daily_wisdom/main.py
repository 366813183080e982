#!/usr/bin/env python3
import argparse
import asyncio
import logging
import signal
import sys
from typing import Dict, Optional

from aiohttp import web

from daily_wisdom.api import create_app
from daily_wisdom.config import AppConfig, load_config, load_prompts
from daily_wisdom.models.article import DailyContentReport, GenerationOptions
from daily_wisdom.pipeline.article_builder import DEFAULT_TITLE, ArticleBuilder
from daily_wisdom.pipeline.daily_content_coordinator import DailyContentCoordinator
from daily_wisdom.pipeline.generation_orchestrator import GenerationOrchestrator
from daily_wisdom.pipeline.translation_orchestrator import TranslationOrchestrator
from daily_wisdom.services.article_repository import SQLiteArticleRepository
from daily_wisdom.services.deepl_translator import DeepLTranslator
from daily_wisdom.services.gemini_generator import GeminiGenerator
from daily_wisdom.services.gemini_translator import GeminiTranslator
from daily_wisdom.services.scheduler import DailyScheduler
from daily_wisdom.services.translation_chain import TranslationProviderChain
from daily_wisdom.utils.dates import normalize_date, today_utc
from daily_wisdom.utils.logging_config import PerformanceTracker, setup_logging


class Application:
    """
    Wires providers, repository and orchestrators together once per process.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or load_config()
        self.logger = logging.getLogger(__name__)

        prompts = load_prompts(self.config.prompts_path)
        self.repository = SQLiteArticleRepository(db_path=self.config.database_path)
        self.generator_provider = GeminiGenerator(
            api_key=self.config.gemini_api_key,
            model=self.config.gemini_generation_model,
            prompts=prompts,
        )
        self.deepl = DeepLTranslator(
            api_key=self.config.deepl_api_key,
            api_url=self.config.deepl_api_url,
            min_quota_characters=self.config.deepl_min_quota,
            quota_ttl_seconds=self.config.quota_cache_ttl_seconds,
        )
        self.gemini_translator = GeminiTranslator(
            api_key=self.config.gemini_api_key,
            model=self.config.gemini_translation_model,
            prompts=prompts,
        )
        self.chain = TranslationProviderChain(primary=self.deepl, fallback=self.gemini_translator)
        builder = ArticleBuilder(default_title=(prompts.get("generation") or {}).get("default_title", DEFAULT_TITLE))
        self.generation = GenerationOrchestrator(self.generator_provider, self.repository, builder)
        self.translation = TranslationOrchestrator(self.chain, self.repository)
        self.coordinator = DailyContentCoordinator(self.generation, self.translation, self.repository)
        self.scheduler = DailyScheduler(self.coordinator)

    async def initialize(self) -> None:
        await self.repository.initialize_db()
        await self.chain.describe_status()
        generation_model = self.config.gemini_generation_model
        available = self.generator_provider.is_available()
        self.logger.info(
            f"Article generation: {'✓ Available (' + generation_model + ')' if available else '✗ Not configured'}"
        )

    async def close(self) -> None:
        self.scheduler.stop()
        await self.deepl.close()
        await self.repository.close()

    async def run_once(self, date: Optional[str], options: GenerationOptions) -> DailyContentReport:
        day = normalize_date(date) if date else today_utc()
        if not day:
            raise ValueError(f"Invalid date: {date!r}")
        with PerformanceTracker(f"daily content for {day}", self.logger):
            return await self.coordinator.ensure_article_for_date(day, options)

    async def health_check(self) -> Dict[str, bool]:
        results = {
            "generation": self.generator_provider.is_available(),
            "deepl": self.deepl.is_available(),
            "gemini_translation": self.gemini_translator.is_available(),
        }
        if self.deepl.api_key:
            try:
                quota = await self.deepl.check_quota(force_refresh=True)
                results["deepl"] = quota.remaining >= self.deepl.min_quota_characters
            except Exception as e:
                self.logger.error(f"DeepL quota check failed: {e}")
                results["deepl"] = False
        try:
            await self.repository.get_all_available_dates()
            results["database"] = True
        except Exception as e:
            self.logger.error(f"Database check failed: {e}")
            results["database"] = False
        return results

    async def serve(self) -> None:
        """Content API + daily scheduler until SIGINT/SIGTERM."""
        app = create_app(
            self.repository,
            self.coordinator,
            self.translation,
            api_key=self.config.generate_article_api_key,
            production=self.config.is_production,
        )
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.config.api_host, self.config.api_port)
        await site.start()
        self.logger.info(f"🚀 Daily Wisdom API listening on {self.config.api_host}:{self.config.api_port}")

        self._install_signal_handlers()
        if self.config.generate_on_startup:
            self.coordinator.trigger_manual_generation(today_utc())
        else:
            self.logger.info("[Startup] Skipping startup generation due to configuration")

        try:
            await self.scheduler.run_forever()
        finally:
            await runner.cleanup()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.scheduler.stop)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform (e.g. Windows event loops)
                pass


async def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Daily Wisdom content pipeline")
    parser.add_argument('--once', action='store_true', help='Generate content for one date and exit')
    parser.add_argument('--date', help='Target date (YYYY-MM-DD), defaults to today (UTC)')
    parser.add_argument('--translations-only', action='store_true', help='Only fill in missing translations')
    parser.add_argument('--force', action='store_true', help='Regenerate article and translations even if present')
    parser.add_argument('--serve', action='store_true', help='Run the content API with the daily scheduler')
    parser.add_argument('--schedule', action='store_true', help='Run the daily scheduler only')
    parser.add_argument('--health', action='store_true', help='Health check only')
    parser.add_argument('--dates', action='store_true', help='List dates with a stored article')
    parser.add_argument('--reset-db', action='store_true', help='Delete ALL stored articles')
    args = parser.parse_args(argv)

    config = load_config()
    setup_logging(log_level=config.log_level, log_dir=config.log_dir)
    try:
        app = Application(config)
    except Exception as e:
        print(f"❌ Fatal error: {e}")
        logging.exception("Failed to initialize application")
        return 1

    try:
        await app.initialize()

        if args.reset_db:
            print("🗑️  WARNING: This will delete ALL stored articles!")
            response = input("Are you sure? Type 'yes' to confirm: ")
            if response.lower() == 'yes':
                await app.repository.reset_database()
                print("✅ Database reset")
            else:
                print("❌ Reset cancelled")
            return 0

        if args.health:
            health = await app.health_check()
            print("Service Health Status:")
            for service, status in health.items():
                print(f"  {service}: {'✅' if status else '❌'}")
            return 0 if health.get("database") else 1

        if args.dates:
            for day in await app.repository.get_all_available_dates():
                print(day)
            return 0

        if args.once:
            options = GenerationOptions(translations_only=args.translations_only, force=args.force)
            report = await app.run_once(args.date, options)
            print(f"✅ {report.summary()}")
            for language, error in sorted(report.failed.items()):
                print(f"  ❌ {language}: {error}")
            return 0

        if args.schedule:
            app._install_signal_handlers()
            await app.scheduler.run_forever()
            return 0

        await app.serve()
        return 0
    except KeyboardInterrupt:
        print("\n⚠️ Shutting down gracefully...")
        return 0
    except Exception as e:
        print(f"❌ Fatal error: {e}")
        logging.exception("Fatal error in main")
        return 1
    finally:
        await app.close()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
