import json
import logging
from decimal import Decimal
from zoneinfo import ZoneInfo

from utils.app_config import get_db_folder, get_log_level, get_time_zone, load_config, save_config
from utils.currency import format_currency, format_percentage, format_signed, format_transaction_amount
from utils.constants import EXPENSE, INCOME
from utils.log import configure_logging


def test_missing_config_is_empty(tmp_path):
    assert load_config(tmp_path / "nope.json") == {}


def test_corrupt_config_is_empty(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_config(path) == {}


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "config.json"
    save_config({"db_folder": "/data", "time_zone": "Europe/Paris"}, path)
    assert json.loads(path.read_text(encoding="utf-8"))["db_folder"] == "/data"
    assert not path.with_suffix(".tmp").exists()
    config = load_config(path)
    assert get_db_folder(config) == "/data"
    assert get_time_zone(config) == ZoneInfo("Europe/Paris")


def test_time_zone_defaults_and_falls_back_to_utc():
    assert get_time_zone({}) == ZoneInfo("UTC")
    assert get_time_zone({"time_zone": "Mars/Olympus_Mons"}) == ZoneInfo("UTC")


def test_log_level():
    assert get_log_level({}) == "INFO"
    assert get_log_level({"log_level": "debug"}) == "DEBUG"


def test_configure_logging_installs_one_handler():
    root = logging.getLogger()
    configure_logging("WARNING")
    configure_logging("nonsense")
    ours = [h for h in root.handlers if getattr(h, "_expense_tracker", False)]
    assert len(ours) == 1
    assert root.level == logging.INFO
    root.removeHandler(ours[0])


def test_settings_round_trip(db):
    assert db.get_setting("currency_symbol") == "$"
    db.set_setting("currency_symbol", "€")
    assert db.get_setting("currency_symbol") == "€"
    assert db.get_setting("missing", "fallback") == "fallback"


def test_currency_formatting():
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_signed(Decimal("-3")) == "-$3.00"
    assert format_transaction_amount(INCOME, Decimal("12")) == "+$12.00"
    assert format_transaction_amount(EXPENSE, Decimal("12"), "€") == "-€12.00"
    assert format_percentage(66.6666) == "66.7%"
