"""
app/parsing package marker.
"""

from app.parsing.coercers import (
    annualize_hourly,
    parse_boolean,
    parse_date,
    parse_integer,
    parse_number,
    parse_string,
)
from app.parsing.tokenizer import iter_rows, number_lines, parse_csv_line, split_lines

__all__ = [
    "annualize_hourly",
    "iter_rows",
    "number_lines",
    "parse_boolean",
    "parse_csv_line",
    "parse_date",
    "parse_integer",
    "parse_number",
    "parse_string",
    "split_lines",
]
