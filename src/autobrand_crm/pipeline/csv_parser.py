"""
CSV parsing for scraper lead exports.

Scraper and service-provider exports routinely carry quoted, comma-bearing
fields (channel descriptions, "Last, First" names), so fields are split by a
single left-to-right scan with an in-quotes flag:
- a field may be wrapped in double quotes
- "" inside a quoted field is a literal quote character
- commas inside quotes are data, not separators

Rows are returned as dicts keyed by normalized header name, so column order
and header quoting style do not matter.
"""

from dataclasses import dataclass, field

from ..errors import EmptyFileError

QUOTE_CHARS = '"\''


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into raw field values."""
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == '"' and not in_quotes:
            in_quotes = True
        elif char == '"' and in_quotes:
            if i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = False
        elif char == ',' and not in_quotes:
            values.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1

    values.append(''.join(current))
    return values


def normalize_header(cell: str) -> str:
    """Lower-case, trim and strip surrounding quotes: ' "Lead Score" ' -> 'lead score'."""
    return cell.strip().strip(QUOTE_CHARS).strip().lower()


@dataclass
class ParsedCSV:
    """Header names plus the rows that had at least one field per column."""

    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)
    skipped_short_rows: int = 0


def parse_csv(text: str) -> ParsedCSV:
    """
    Parse CSV text with a header row into dict rows.

    Blank lines are ignored. A row with fewer fields than there are header
    columns is treated as truncated and skipped.

    Raises:
        EmptyFileError: The text has fewer than two lines (no data rows)
    """
    lines = text.split('\n')
    if len(lines) < 2:
        raise EmptyFileError('CSV file has no data rows', context={'lines': len(lines)})

    headers = [normalize_header(h) for h in parse_csv_line(lines[0].strip())]
    parsed = ParsedCSV(headers=headers)

    for raw_line in lines[1:]:
        line = raw_line.strip()
        if not line:
            continue

        values = parse_csv_line(line)
        if len(values) < len(headers):
            parsed.skipped_short_rows += 1
            continue

        parsed.rows.append(
            {header: values[idx].strip() for idx, header in enumerate(headers)}
        )

    return parsed
