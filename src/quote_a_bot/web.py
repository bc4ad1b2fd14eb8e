"""
Status web app: readiness, uptime and read-only catalog pass-throughs.
"""

import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .bot import QuoteBot
from .models import ClientTier, Product, QuoteMode

logger = logging.getLogger(__name__)

PRODUCT_LIST_LIMIT = 50
SEARCH_LIMIT = 20


def create_app(bot: QuoteBot) -> FastAPI:
    app = FastAPI(
        title="quote-a-bot",
        description="Status endpoints for the quotation bot",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=bot.config.web.cors_origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    pricing = bot.dispatcher.engine.pricing

    def product_json(product: Product) -> dict:
        data = product.to_dict()
        data["price"] = pricing.format_price(
            pricing.unit_price(product, ClientTier.GENERAL, QuoteMode.LIST)
        )
        return data

    @app.get("/")
    async def root():
        return {
            "status": "Bot activo",
            "ready": bot.ready,
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/status")
    async def status():
        return bot.status()

    @app.get("/products")
    async def products():
        catalog = bot.catalog
        stats = catalog.stats()
        return {
            "stats": {
                "count": stats.count,
                "category_count": stats.category_count,
                "last_load_time": stats.last_load_time.isoformat() if stats.last_load_time else None,
            },
            "products": [product_json(p) for p in catalog.all_products()[:PRODUCT_LIST_LIMIT]],
            "categories": catalog.categories(),
        }

    @app.get("/products/search/{query}")
    async def search(query: str):
        results = bot.catalog.search(query)
        logger.debug(f"Web search {query!r}: {len(results)} result(s)")
        return {
            "query": query,
            "results": [product_json(p) for p in results[:SEARCH_LIMIT]],
            "total": len(results),
        }

    return app
