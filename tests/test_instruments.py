from datetime import date

import pytest

from optchains.instruments import (
    MappingInterval,
    OptionInstruments,
    StrikeKeyPutCallMap,
    make_instrument_id_to_osi_map,
    make_osi_to_instrument_id_map,
    make_strike_key_to_instrument_id_map,
)

VAL = "2024-06-07"


def _iv(symbol, start=date(2024, 6, 7)):
    return [MappingInterval(start, date(2024, 6, 8), symbol)]


def _mappings():
    return {
        "SPY   240607C00425000": _iv("1001"),
        "SPY   240607P00425000": _iv("1002"),
        "SPY   240607C00430000": _iv("1003"),
        "SPY   240610C00425000": _iv("1004"),
        "SPY   240614P00420000": _iv("1005"),
        "SPY   240705C00425000": _iv("1006"),
        "QQQ   240607C00400000": _iv("2001"),
    }


@pytest.fixture
def instruments():
    inst = OptionInstruments()
    inst.insert(_mappings())
    return inst


def test_tree_levels(instruments):
    assert instruments.underliers() == ["QQQ", "SPY"]
    assert instruments.valuation_dates("SPY") == [VAL]
    assert instruments.expiry_dates("SPY", VAL) == [
        "2024-06-07", "2024-06-10", "2024-06-14", "2024-07-05"
    ]
    assert instruments.valuation_dates("XYZ") == []


def test_defaults(instruments):
    assert instruments.underlier() == "QQQ"
    assert instruments.valuation_date() == VAL
    assert instruments.expiry_date() == "2024-06-07"


def test_strike_keys_and_strikes(instruments):
    assert instruments.strike_keys("SPY", VAL, "2024-06-07", False) == ["00425000", "00430000"]
    assert instruments.strike_keys("SPY", VAL, "2024-06-07", True) == ["00425000"]
    assert instruments.strikes("SPY", VAL, "2024-06-07", False) == pytest.approx([425.0, 430.0])
    assert instruments.strikes("SPY", VAL, "1999-01-01", False) == []


def test_id_maps_are_inverse(instruments):
    osi_to_id = instruments.osi_to_instrument_id_map("SPY", VAL, "2024-06-07")
    id_to_osi = instruments.instrument_id_to_osi_map("SPY", VAL, "2024-06-07")
    assert osi_to_id["SPY   240607C00425000"] == "1001"
    assert {v: k for k, v in osi_to_id.items()} == id_to_osi
    assert instruments.osi_to_instrument_id_map("SPY", VAL, "2030-01-01") == {}


def test_default_maps(instruments):
    assert instruments.instrument_id_to_osi_map() == {"2001": "QQQ   240607C00400000"}


def test_get_restricts_to_one_chain(instruments):
    sub = instruments.get("SPY", VAL, "2024-06-10")
    assert sub.underliers() == ["SPY"]
    assert sub.expiry_date() == "2024-06-10"
    assert sub.unmapped is None
    empty = instruments.get("SPY", VAL, "2031-01-01")
    with pytest.raises(ValueError, match="No default underlier available."):
        empty.underlier()


def test_expiry_dates_for_dte(instruments):
    assert instruments.expiry_dates_for_dte("SPY", VAL, 0) == ["2024-06-07"]
    assert instruments.expiry_dates_for_dte("SPY", VAL, 7) == [
        "2024-06-07", "2024-06-10", "2024-06-14"
    ]
    assert instruments.expiry_dates_for_dte("SPY", "2020-01-01", 7) == []


def test_next_expiry_includes_day_after_zero_dte(instruments):
    assert instruments.next_expiry_date("SPY", VAL) == ["2024-06-07", "2024-06-10"]


def test_next_expiry_without_zero_dte():
    inst = OptionInstruments()
    inst.insert({
        "SPY   240610C00425000": _iv("1"),
        "SPY   240614C00425000": _iv("2"),
    })
    assert inst.next_expiry_date("SPY", VAL) == ["2024-06-10"]


def test_unmapped_tracking():
    inst = OptionInstruments()
    extra = MappingInterval(date(2024, 6, 8), date(2024, 6, 9), "9")
    inst.insert({
        "SPY   240607C00425000": _iv("1") + [extra],
        "SPY   240607C00426000": [],
        "garbage": _iv("3"),
    })
    assert inst.unmapped.osi_identifiers == ["SPY   240607C00426000"]
    assert inst.unmapped.invalid_osi_identifiers == ["garbage"]
    assert inst.unmapped.mappings == [("SPY   240607C00425000", extra)]
    assert inst.strike_keys("SPY", VAL, "2024-06-07", False) == ["00425000"]


def test_empty_raises():
    inst = OptionInstruments()
    with pytest.raises(ValueError, match="No default strike key put call map available."):
        inst.default_put_call_map()
    with pytest.raises(ValueError, match="No default valuation date available."):
        inst.valuation_date()
    with pytest.raises(ValueError, match="No default expiry date available."):
        inst.expiry_date()


def test_string_start_date():
    inst = OptionInstruments()
    inst.insert({"SPY   240607P00425000": [MappingInterval(VAL, VAL, "7")]})
    assert inst.valuation_dates("SPY") == [VAL]


def test_free_map_helpers(instruments):
    pcm = instruments.strike_key_put_call_map("SPY", VAL, "2024-06-07")
    assert isinstance(pcm, StrikeKeyPutCallMap)
    assert make_strike_key_to_instrument_id_map(pcm.calls) == {
        "00425000": "1001", "00430000": "1003"
    }
    osi_to_id = make_osi_to_instrument_id_map(pcm)
    assert make_instrument_id_to_osi_map(pcm) == {v: k for k, v in osi_to_id.items()}
    assert len(osi_to_id) == 3