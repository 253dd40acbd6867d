# optchains

A library for turning consolidated best bid/offer quotes for listed equity
options into option chains. It estimates the put-call-parity price of the
underlier, reads Treasury par yield curves for risk-free rates, and lays out
typed tables that can be written as CSV. It has no dependencies outside the
standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Purpose |
| --- | --- |
| `optchains.timestamps` | Nanosecond `Timestamp`, `ExchangeClose`, `NASDAQ_CLOSE`, `make_timestamp`, `make_timestamp_zulu`, `serialize_timestamp` |
| `optchains.apputils` | String and mapping helpers: `trim`, `split_str`, `split_by_linefeed`, `join_keys`, `join_items`, `key_list` |
| `optchains.threadpool` | `VariadicThreadPool`, a fixed-size pool returning futures |
| `optchains.cells` | Typed cells (`DataType`, `UInt`, `Cell`, `make_cell`), column formats (`IntFormat`, `UIntFormat`, `DoubleFormat`, `StringFormat`, `TimestampFormat`, `TimestampFormatSeconds`) and `Header` |
| `optchains.datagrid` | `DataGrid`, a small typed table that serializes to CSV |
| `optchains.osi` | `OsiOption`, `parse_osi`, `strike_to_key`, `strike_from_key` for OSI option symbols |
| `optchains.instruments` | `OptionInstruments`: underlier / valuation date / expiry / strike key to instrument ID mappings |
| `optchains.optionchain` | `CbboMsg`, `BidAskLevel`, `Record`, `OptionChain` and the functions that build chains from quotes |
| `optchains.marketenv` | `MarketEnvironment`, `read_yield_curve_csv` and `next_in_time_range` |

## Timestamps

`Timestamp` holds nanoseconds since the Unix epoch; the epoch itself stands
for "no time". `serialize_timestamp` renders `yyyy-mm-dd HH:MM:SS.nnnnnnnnnZ`.
`make_timestamp` builds one from wall-clock fields in a named time zone, and
`make_timestamp_zulu` gives midnight UTC of a `yyyy-mm-dd` date.

## OSI symbols and strike keys

An OSI symbol holds the underlier padded with spaces, the expiry as `YYMMDD`,
`C` or `P`, and the strike times 1000 in eight digits. Strikes are kept under
that eight-digit key, so chains sort by strike as strings:

```python
from optchains.osi import parse_osi, strike_to_key, strike_from_key

option = parse_osi("SPY   240607C00425000")
option.underlier, option.expiry_date, option.is_put   # "SPY", "2024-06-07", False
strike_to_key(500.0)          # "00500000"
strike_from_key("00425000")   # 425.0
```

## Building a chain

1. Register symbology mappings (OSI symbol to a list of `MappingInterval`)
   with `OptionInstruments.insert`. Empty, invalid and extra mappings are
   recorded in `OptionInstruments.unmapped`.
2. Group quotes per instrument ID with `map_cbbo_msgs_to_instruments`.
3. Slot them in time with `build_record_timeline` and keep the latest, most
   complete quote per strike with `map_latest_best_in_timeline`.
4. Assemble an `OptionChain` with `build_option_chain`; strikes with no usable
   quote get empty records and are listed in
   `missing_instrument_id_to_osi`.

`find_instruments_missing_cbbo` lists the instruments that never had a quote
with both bid and ask sizes.

With a chain in hand:

```python
from optchains.timestamps import NASDAQ_CLOSE

rate = chain.parity_rate(0.04, NASDAQ_CLOSE)
score = chain.parity_rate_quality_score(0.04, NASDAQ_CLOSE)
```

`parity_rate` averages the put-call-parity underlier prices of the strikes
around their mean. If no strike has valid quotes on both sides it retries
with quotes that have one valid side, and raises `RuntimeError` if that fails
too. The quality score is the variance of the per-strike parity prices around
a least-squares line (`fit_least_squares_line`,
`compute_variance_along_fitted_line`). `discount_factor` gives the continuous
discount factor from the chain time to the exchange close on expiry.

## Risk-free rates

```python
from optchains.marketenv import MarketEnvironment

env = MarketEnvironment(0.04, NASDAQ_CLOSE, "par_yield_curve.csv")
r = env.risk_free_rate(valuation_time, expiry_time)
```

The CSV has the Treasury daily par yield curve layout (`Date,"1 Mo",...`,
dates as `MM/DD/YYYY`). The curve nearest the valuation time is used, looked
up at its own date shifted by the tenor, and the semiannual par rate is
converted to a continuously compounded rate. Without a curve file, or if the
file is missing or empty, the default rate is returned.

## Tabular output

```python
import io
from optchains.cells import UInt, DoubleFormat
from optchains.datagrid import DataGrid

grid = DataGrid()
grid.add_row(1, UInt(2), 3.0, "Hello")
grid.set_col_names(["IntCol", "UIntCol", "DoubleCol", "StringCol"])
grid.set_format(2, DoubleFormat(".3f"))

out = io.StringIO()
grid.serialize_header(out)
grid.serialize(out)
```

Column types come from the first values added or from `create_headers`;
values of another type raise `ValueError`. Empty cells print as `{null}`
unless `set_null_value` says otherwise.

## What it does not do

- It does not download quotes or symbology; messages and mappings are passed
  in as `CbboMsg` and `MappingInterval` values.
- It has no command-line program and does not store chains anywhere.
- It does not fill gaps in a chain by estimating missing quotes.
- It has no ready-made CSV layout for option chains; build one with
  `DataGrid`.