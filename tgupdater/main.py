import asyncio
import signal
import sys

from tgupdater.config import settings
from tgupdater.exceptions.updater import UpdaterSetupError
from tgupdater.logger import logger, setup_logging
from tgupdater.on_startup import on_startup
from tgupdater.service import start_updater
from tgupdater.utils.loop_settings import (
    handle_async_exception,
    install_excepthook,
    safe_create_task,
)


async def main():
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(handle_async_exception)

    publisher = await on_startup(settings)
    try:
        logger.info("Запускаем апдейтер...")
        updater = await start_updater(settings, publisher)

        def handle_sigterm():
            safe_create_task(updater.stop(), name="updater_stop")

        loop.add_signal_handler(signal.SIGTERM, handle_sigterm)
        loop.add_signal_handler(signal.SIGINT, handle_sigterm)

        await updater.idle()
    finally:
        if publisher is not None:
            await publisher.stop()


def run():
    install_excepthook()
    setup_logging()
    logger.info(f"Все настройки инициализированы: {settings}")
    try:
        asyncio.run(main())
    except UpdaterSetupError as e:
        logger.opt(exception=e).critical(f"Апдейтер не запущен: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
