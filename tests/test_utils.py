import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from utils import app_config
from utils.currency import (
    format_currency, format_signed, from_minor_units, to_decimal, to_minor_units,
)
from utils.date_helpers import (
    add_months, coerce_date_str, format_display_date, friendly_month, month_range,
    next_month, parse_display_date, prev_month,
)


class TestCurrency:
    @pytest.mark.parametrize("raw, expected", [
        ("1,234.5", Decimal("1234.50")),
        (" 10 ", Decimal("10.00")),
        (2.675, Decimal("2.68")),
        (Decimal("0.125"), Decimal("0.13")),
        (7, Decimal("7.00")),
    ])
    def test_to_decimal_accepts_numbers(self, raw, expected):
        assert to_decimal(raw) == expected

    @pytest.mark.parametrize("raw", [None, True, "", "ten", "Infinity", float("nan")])
    def test_to_decimal_rejects_non_numbers(self, raw):
        assert to_decimal(raw) is None

    def test_minor_units(self):
        assert to_minor_units(Decimal("12.34")) == 1234
        assert from_minor_units(1234) == Decimal("12.34")
        assert from_minor_units(None) == Decimal("0.00")

    def test_formatting(self):
        assert format_currency(Decimal("1234.5")) == "₹1,234.50"
        assert format_currency(Decimal("3"), "$") == "$3.00"
        assert format_signed(Decimal("-5")) == "-₹5.00"
        assert format_signed(Decimal("0")) == "+₹0.00"


class TestDates:
    def test_coerce_date_str(self):
        assert coerce_date_str(date(2024, 2, 29)) == "2024-02-29"
        assert coerce_date_str(datetime(2024, 2, 29, 13, 5)) == "2024-02-29"
        assert coerce_date_str(" 2024-02-29 ") == "2024-02-29"
        assert coerce_date_str("2024-02-30") is None
        assert coerce_date_str(20240229) is None

    def test_month_helpers(self):
        assert month_range("2024-02") == ("2024-02-01", "2024-02-29")
        assert prev_month("2024-01") == "2023-12"
        assert next_month("2024-12") == "2025-01"
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert friendly_month("2024-03") == "March 2024"
        with pytest.raises(ValueError):
            month_range("March")

    def test_display_dates(self):
        assert format_display_date("2024-03-09") == "09/03/2024"
        assert format_display_date("2024-03-09", "MM/DD/YYYY") == "03/09/2024"
        assert parse_display_date("09.03.2024", "DD.MM.YYYY") == date(2024, 3, 9)
        assert parse_display_date("2024-03-09", "DD/MM/YYYY") == date(2024, 3, 9)
        assert parse_display_date("not a date", "DD/MM/YYYY") is None


class TestAppConfig:
    def test_missing_or_corrupt_config_is_empty(self, tmp_path):
        assert app_config.load_config(tmp_path / "absent.json") == {}
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        assert app_config.load_config(bad) == {}
        listy = tmp_path / "list.json"
        listy.write_text("[1, 2]", encoding="utf-8")
        assert app_config.load_config(listy) == {}

    def test_save_is_atomic_and_round_trips(self, tmp_path):
        target = tmp_path / "nested" / "config.json"
        app_config.save_config({"owner_id": "till-1"}, target)
        assert json.loads(target.read_text(encoding="utf-8")) == {"owner_id": "till-1"}
        assert not target.with_suffix(".tmp").exists()
        assert app_config.load_config(target) == {"owner_id": "till-1"}

    def test_accessors_use_defaults(self, monkeypatch):
        monkeypatch.setattr(app_config.getpass, "getuser", lambda: "os-user")
        assert app_config.get_db_path({}) == "cashledger.db"
        assert app_config.get_owner_id({}) == "os-user"
        assert app_config.get_log_level({}) == "INFO"

    def test_accessors_read_config(self, tmp_path):
        config = {"db_folder": str(tmp_path), "owner_id": "till-1", "log_level": "debug"}
        assert app_config.get_db_path(config) == str(tmp_path / "cashledger.db")
        assert app_config.get_owner_id(config) == "till-1"
        assert app_config.get_log_level(config) == "DEBUG"

    def test_set_db_folder(self, tmp_path, monkeypatch):
        target = tmp_path / "config.json"
        monkeypatch.setattr(app_config, "CONFIG_FILE", target)
        app_config.set_db_folder(str(tmp_path / "books"))
        assert app_config.load_config(target)["db_folder"] == str(tmp_path / "books")
        app_config.set_db_folder(None)
        assert "db_folder" not in app_config.load_config(target)
