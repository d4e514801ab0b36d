import asyncio
import logging

from noken.db.session import init_models

logger = logging.getLogger(__name__)


async def create_all(drop: bool = False):
    # init_models importe noken.db.base, qui enregistre toutes les tables dans la metadata
    await init_models(drop=drop)
    logger.info("✅ Toutes les tables ont été créées")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_all())
