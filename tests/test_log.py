import asyncio
import datetime
from decimal import Decimal

from storefront.schemas.order import OrderStatus
from storefront.utils import log as log_module
from storefront.utils.log import Log


async def test_day_change_opens_exactly_one_new_logger(tmp_path, monkeypatch):
    log = Log(log_dir=str(tmp_path))
    await log.log_info("order", "first")
    log.day_path = "yesterday.log"

    created = []
    real_logger = log_module.Logger

    def counting_logger(**kwargs):
        logger = real_logger(**kwargs)
        created.append(logger)
        return logger

    monkeypatch.setattr(log_module, "Logger", counting_logger)

    await asyncio.gather(*(log.log_info("order", f"line {i}") for i in range(10)))

    assert len(created) == 1
    assert log.logger is created[0]
    await log.shutdown()


async def test_lines_land_in_daily_file(tmp_path):
    log = Log(log_dir=str(tmp_path))
    await log.log_warning("ledger", "retry", {"orderId": "ORD-001"})
    await log.shutdown()

    now = datetime.datetime.now()
    content = (tmp_path / f"{now:%Y}" / f"{now:%m}" / f"{now:%d}.log").read_text(encoding="utf-8")
    assert "WARNING ledger: retry" in content
    assert "ORD-001" in content


def test_safe_serialize_money_and_enums(tmp_path):
    log = Log(log_dir=str(tmp_path))

    data = log.safe_serialize({
        "total": Decimal("19.99"),
        "status": OrderStatus.SHIPPED,
        "at": datetime.datetime(2026, 1, 2, 3, 4, 5),
    })

    assert data == {"total": 19.99, "status": "Shipped", "at": "2026-01-02T03:04:05"}
