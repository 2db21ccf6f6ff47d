import codecs
import csv
import json
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Sequence

from ..errors import DecodeError
from ..jobs import ColumnSpec

Row = Dict[str, Any]

DEFAULT_CHUNK_SIZE = 64 * 1024
STRUCTURED_LEAD_CHARACTERS = ("{", "[")


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON.
    raise ValueError(f"{name} is not valid JSON")


def iter_text_lines(stream: BinaryIO, encoding: str = "utf-8-sig", chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Decode a byte stream incrementally and yield it line by line, line endings kept."""
    decoder = codecs.getincrementaldecoder(encoding)()
    pending = ""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        pending += decoder.decode(chunk)
        lines = pending.split("\n")
        # Last piece is an unterminated line; carry it into the next chunk.
        pending = lines.pop()
        for line in lines:
            yield line + "\n"
    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending


class CSVRowDecoder:
    """Decode a CSV byte stream into typed rows keyed by column key.

    Field values are mapped to columns by position; header text in the file is never
    consulted. Iteration is lazy and pull-based: nothing is read from the stream until
    the consumer asks for the next row, so a consumer that stops to flush a batch also
    stops the reader. The decoder can only be iterated once.
    """

    def __init__(
        self,
        stream: BinaryIO,
        columns: Sequence[ColumnSpec],
        first_row_is_header: bool = False,
        encoding: str = "utf-8-sig",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.stream = stream
        self.columns = list(columns)
        self.first_row_is_header = first_row_is_header
        self.encoding = encoding
        self.chunk_size = chunk_size
        self.records_read = 0
        self.rows_skipped = 0
        self._started = False

    def __iter__(self) -> Iterator[Row]:
        if self._started:
            raise RuntimeError("CSVRowDecoder can only be iterated once.")
        self._started = True
        return self._iter_rows()

    def _iter_rows(self) -> Iterator[Row]:
        reader = csv.reader(iter_text_lines(self.stream, self.encoding, self.chunk_size))
        while True:
            try:
                record = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                raise DecodeError(None, None, f"line {reader.line_num}: {exc}") from exc
            except UnicodeDecodeError as exc:
                raise DecodeError(None, None, f"invalid {self.encoding} text: {exc.reason}") from exc

            self.records_read += 1
            if self.first_row_is_header and self.records_read == 1:
                continue

            values = self._trimmed_values(record)
            if not any(values):
                self.rows_skipped += 1
                continue

            yield {
                column.key: self._coerce(column, value)
                for column, value in zip(self.columns, values)
            }

    def _trimmed_values(self, record: List[str]) -> List[str]:
        values = [value.strip() for value in record[: len(self.columns)]]
        values.extend([""] * (len(self.columns) - len(values)))
        return values

    @staticmethod
    def _coerce(column: ColumnSpec, value: str) -> Optional[Any]:
        if not value:
            return None
        if not column.is_structured or not value.startswith(STRUCTURED_LEAD_CHARACTERS):
            return value
        try:
            parsed = json.loads(value, parse_constant=_reject_constant)
        except ValueError as exc:
            raise DecodeError(column.name, value, str(exc)) from exc
        if isinstance(parsed, (dict, list)):
            return parsed
        return value
