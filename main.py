# main.py
"""
Process entry point for the embedding store.

The enclosing service uses :func:`embedding_store_lifespan` to build the
pool, run the start-up bootstrap once and receive an explicitly constructed
:class:`EmbeddingStore`.  Run as a script, it performs the bootstrap only and
reports whether pgvector is available.
"""

import sys
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from dotenv import load_dotenv

from config import Config, load_config
from db.bootstrap import ensure_embeddings_table, ensure_vector_capability
from db.connection import close_pool, create_pool
from embedding.store import EmbeddingStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def embedding_store_lifespan(config: Optional[Config] = None) -> AsyncIterator[EmbeddingStore]:
    """
    Own the pool for the lifetime of the block and yield a ready store.

    Bootstrap failure is not fatal; schema sync failure is.
    """
    config = config or load_config()
    pool = await create_pool(config)
    try:
        capable = await ensure_vector_capability(pool)
        if config.DB_SYNC_SCHEMA:
            if capable:
                await ensure_embeddings_table(pool, config.EMBEDDINGS_TABLE, config.EMBEDDING_DIMENSION)
            else:
                logger.warning("Skipping schema sync: pgvector extension is not available")

        store = EmbeddingStore(
            pool,
            table=config.EMBEDDINGS_TABLE,
            dimension=config.EMBEDDING_DIMENSION,
        )
        logger.info("Embedding store ready: %r", store)
        yield store
    finally:
        await close_pool(pool)


async def run_bootstrap(config: Config) -> int:
    pool = await create_pool(config)
    try:
        capable = await ensure_vector_capability(pool)
        if capable and config.DB_SYNC_SCHEMA:
            await ensure_embeddings_table(pool, config.EMBEDDINGS_TABLE, config.EMBEDDING_DIMENSION)
    finally:
        await close_pool(pool)
    return 0 if capable else 1


def main() -> int:
    load_dotenv()  # dev only; no-op when the environment is already set
    config = load_config()
    config.configure_logging()
    logger.info("Configuration loaded: %s", config)
    return asyncio.run(run_bootstrap(config))


if __name__ == "__main__":
    sys.exit(main())
