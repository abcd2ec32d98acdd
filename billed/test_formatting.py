import datetime as dt

import pytest

from billed.formatting import format_date, format_status


def test_format_date():
    assert format_date("2004-04-04") == "4 Avr. 04"
    assert format_date("2021-12-25") == "25 Déc. 21"
    assert format_date(dt.date(2001, 1, 1)) == "1 Jan. 01"


def test_format_date_rejects_corrupted_values():
    with pytest.raises(ValueError):
        format_date("not a date")
    with pytest.raises(ValueError):
        format_date("2004-13-01")


def test_format_status():
    assert format_status("pending") == "En attente"
    assert format_status("accepted") == "Accepté"
    assert format_status("refused") == "Refusé"
    assert format_status("unknown") == "unknown"
