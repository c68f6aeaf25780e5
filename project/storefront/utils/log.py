# storefront/utils/log.py
# Журнал событий сервиса: один файл на день, LOG_DIR/ГГГГ/ММ/ДД.log

import os
import asyncio
import datetime
import logging
from decimal import Decimal
from enum import Enum

from aiologger import Logger
from aiologger.handlers.files import AsyncFileHandler

from storefront.config import settings

LEVELS = {
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


class Log:
    """
    Асинхронный журнал поверх aiologger.

    Строка журнала: "ДД.ММ.ГГГГ ЧЧ:ММ:СС УРОВЕНЬ target: сообщение: {данные}".
    Синхронные варианты (*_sync) нужны до запуска event loop и после его остановки.
    """

    def __init__(self, log_dir: str | None = None):
        self.log_dir = log_dir or settings.LOG_DIR
        self.log_print = settings.LOG_PRINT.lower() in ("1", "true", "yes")
        self.day_path: str | None = None
        self.logger: Logger | None = None
        self.swap_lock = asyncio.Lock()

    def day_file(self, now: datetime.datetime) -> str:
        folder = os.path.join(self.log_dir, f"{now:%Y}", f"{now:%m}")
        os.makedirs(folder, exist_ok=True)
        return os.path.join(folder, f"{now:%d}.log")

    async def day_logger(self, now: datetime.datetime) -> Logger:
        """Логгер текущего дня; в полночь файл переоткрывается."""
        path = self.day_file(now)
        async with self.swap_lock:
            if self.logger is None or self.day_path != path:
                if self.logger is not None:
                    await self.logger.shutdown()
                self.logger = Logger(name="storefront")
                self.logger.add_handler(AsyncFileHandler(filename=path, mode="a", encoding="utf-8"))
                self.day_path = path
            return self.logger

    def render(self, now: datetime.datetime, level: str, target: str, message: str, data: dict | None) -> str:
        line = f"{now:%d.%m.%Y %H:%M:%S} {level} {target}: {message}"
        if data:
            line += f": {self.safe_serialize(data)}"
        return line

    def echo(self, line: str, is_console: bool | None):
        if self.log_print if is_console is None else is_console:
            print(line)

    # Асинхронное
    async def write(self, level: str, target: str, message: str, data: dict | None = None, is_console: bool | None = None):
        now = datetime.datetime.now()
        line = self.render(now, level, target, message, data)
        logger = await self.day_logger(now)
        await getattr(logger, level.lower())(line)
        self.echo(line, is_console)

    async def log_info(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        await self.write("INFO", target, message, data, is_console)

    async def log_warning(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        await self.write("WARNING", target, message, data, is_console)

    async def log_error(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = True):
        await self.write("ERROR", target, message, data, is_console)

    # Синхронное
    def write_sync(self, level: str, target: str, message: str, data: dict | None = None, is_console: bool | None = None):
        now = datetime.datetime.now()
        line = self.render(now, level, target, message, data)

        sync_logger = logging.getLogger("storefront.boot")
        sync_logger.setLevel(logging.INFO)
        sync_logger.propagate = False
        path = os.path.abspath(self.day_file(now))
        if not any(getattr(h, "baseFilename", None) == path for h in sync_logger.handlers):
            for old in list(sync_logger.handlers):
                sync_logger.removeHandler(old)
                old.close()
            handler = logging.FileHandler(path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            sync_logger.addHandler(handler)

        sync_logger.log(LEVELS[level], line)
        self.echo(line, is_console)

    def log_info_sync(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        self.write_sync("INFO", target, message, data, is_console)

    def log_error_sync(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        self.write_sync("ERROR", target, message, data, is_console)

    def safe_serialize(self, obj):
        """
        Приводит данные события к виду для журнала:
        суммы (Decimal) → float, Enum → значение, даты → ISO,
        модели Pydantic и ORM → словари без служебных полей.
        """
        if isinstance(obj, Enum):
            return obj.value
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime.date, datetime.datetime)):
            return obj.isoformat()
        if isinstance(obj, dict):
            return {k: self.safe_serialize(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple, set)):
            return [self.safe_serialize(v) for v in obj]
        if hasattr(obj, "model_dump"):
            return self.safe_serialize(obj.model_dump())
        if hasattr(obj, "__dict__"):
            # _sa_instance_state и прочее служебное
            return {k: self.safe_serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
        return f"<{type(obj).__name__}>"

    async def shutdown(self):
        async with self.swap_lock:
            if self.logger is not None:
                await self.logger.shutdown()
                self.logger = None
                self.day_path = None
