"""
Asynchronous history dumps.

A ``HistoryDump`` is one entry bound for one file; ``HistoryDump.write_many``
groups dumps by target file and writes each group in one pass through the
writer for its file type (JSON, CSV or TXT), using ``aiofiles``.
``HistoryDumpGenerator`` stamps out dumps sharing the same target settings.
"""
from __future__ import annotations

import asyncio
import csv
import io
import json
import os
from collections import defaultdict
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Union

import aiofiles

OutputData = Union[str, int, float, bool, list, dict, tuple, type(None)]


def default_time_format_function(time_data: datetime) -> str:
    return time_data.strftime("%Y-%m-%d %H:%M:%S")


# =============================================================================
# Writers
# =============================================================================

class BaseWriter(Protocol):
    async def write_batch(self, path: str, data_list: List[Any], mode: str) -> None:
        ...


class JSONWriter:
    """Keeps the file as one JSON array of entries."""

    async def _read_json(self, path: str) -> List[Any]:
        if not os.path.exists(path):
            return []
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            txt = await f.read()
        if not txt.strip():
            return []
        try:
            existing = json.loads(txt)
        except json.JSONDecodeError:
            return []
        return existing if isinstance(existing, list) else [existing]

    async def write_batch(self, path: str, data_list: List[Any], mode: str) -> None:
        existing = [] if mode == "overwrite" else await self._read_json(path)
        existing.extend(data_list)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(existing, indent=2, default=str))


class TXTWriter:
    """One entry per line (multi-line entries are written as they are)."""

    async def write_batch(self, path: str, data_list: List[Any], mode: str) -> None:
        file_mode = "w" if mode == "overwrite" else "a"
        async with aiofiles.open(path, file_mode, encoding="utf-8") as f:
            for item in data_list:
                line = str(item)
                await f.write(line if line.endswith("\n") else f"{line}\n")


class CSVWriter:
    """
    Dict entries become rows under a header made of every key seen so far.

    Appending re-reads the existing rows so a new key widens the header
    instead of misaligning the columns. Non-dict entries are stored under a
    single ``data`` column.
    """

    async def _read_csv(self, path: str) -> List[Dict[str, str]]:
        if not os.path.exists(path):
            return []
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
        return list(csv.DictReader(content.splitlines()))

    @staticmethod
    def _row(item: Any) -> Dict[str, Any]:
        if isinstance(item, dict):
            return {
                key: json.dumps(value, default=str) if isinstance(value, (dict, list)) else value
                for key, value in item.items()
            }
        return {"data": item}

    async def write_batch(self, path: str, data_list: List[Any], mode: str) -> None:
        rows = [] if mode == "overwrite" else await self._read_csv(path)
        rows.extend(self._row(item) for item in data_list)

        headers: List[str] = []
        for row in rows:
            for key in row:
                if key not in headers:
                    headers.append(key)

        buffer = io.StringIO()
        if headers:
            writer = csv.DictWriter(buffer, fieldnames=headers)
            writer.writeheader()
            for row in rows:
                writer.writerow({key: row.get(key, "") for key in headers})

        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(buffer.getvalue())


# =============================================================================
# Dump
# =============================================================================

class HistoryDump:
    """One history entry together with the file it is written to."""

    filetypes = {"json", "csv", "txt"}
    modes = {"overwrite", "append"}

    _writers: Dict[str, BaseWriter] = {
        "json": JSONWriter(),
        "txt": TXTWriter(),
        "csv": CSVWriter(),
    }

    def __init__(
        self,
        path: str,
        *,
        mode: str = "append",
        filetype: str = "__autodetect__",
        data: OutputData = None,
    ) -> None:
        self.path = self._normalize_path(path)
        self.mode = self._validate_mode(mode)
        self.filetype = self._resolve_filetype(filetype)
        self.data = data

    @staticmethod
    def _normalize_path(path: str) -> str:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        return os.path.abspath(path)

    @classmethod
    def _validate_mode(cls, mode: str) -> str:
        if mode not in cls.modes:
            raise ValueError(f"Invalid mode: {mode}")
        return mode

    def _resolve_filetype(self, filetype: str) -> str:
        if filetype != "__autodetect__":
            if filetype not in self.filetypes:
                raise ValueError(f"Invalid filetype: {filetype}")
            return filetype
        extension = os.path.splitext(self.path)[1].lstrip(".").lower()
        if extension in self.filetypes:
            return extension
        raise ValueError("Cannot autodetect filetype from path.")

    def __repr__(self):
        return f"HistoryDump({self.path!r}, mode={self.mode!r}, filetype={self.filetype!r})"

    async def write(self) -> None:
        await self.write_many([self])

    @classmethod
    async def write_many(cls, dumps: Iterable[HistoryDump]) -> None:
        """Write dumps grouped by (path, filetype); the first dump of a group decides its mode."""
        groups = defaultdict(list)
        for d in dumps:
            if not isinstance(d, cls):
                raise TypeError(f"Expected HistoryDump, got {type(d).__name__}")
            groups[(d.path, d.filetype)].append(d)

        await asyncio.gather(*(
            cls._writers[filetype].write_batch(path, [d.data for d in batch], batch[0].mode)
            for (path, filetype), batch in groups.items()
        ))


# =============================================================================
# Generator
# =============================================================================

class HistoryDumpGenerator:
    """Factory for HistoryDump instances sharing a target file and settings."""
    __slots__ = (
        "base_path",
        "filetype",
        "mode",
        "log_time",
        "time_format_function",
        "timestamp_key",
    )

    def __init__(
        self,
        base_path: str,
        *,
        filetype: str = "__autodetect__",
        mode: str = "append",
        log_time: bool = False,
        time_format_function: Callable[[datetime], str] = default_time_format_function,
        timestamp_key: str = "timestamp",
    ) -> None:
        self.base_path = base_path
        self.filetype = filetype
        self.mode = mode
        self.log_time = log_time
        self.time_format_function = time_format_function
        self.timestamp_key = timestamp_key

    def __repr__(self) -> str:
        return (
            f"HistoryDumpGenerator(base_path={self.base_path}, "
            f"mode={self.mode}, filetype={self.filetype}, log_time={self.log_time})"
        )

    def _add_timestamp(self, data: OutputData) -> OutputData:
        time_value = self.time_format_function(datetime.now())
        if data is None:
            return {self.timestamp_key: time_value}
        if isinstance(data, dict):
            return {**data, self.timestamp_key: time_value}
        return {"data": data, self.timestamp_key: time_value}

    def create(self, data: OutputData = None) -> HistoryDump:
        if self.log_time:
            data = self._add_timestamp(data)
        return HistoryDump(self.base_path, mode=self.mode, filetype=self.filetype, data=data)

    def __call__(self, *args) -> Union[HistoryDump, tuple]:
        """gen(x) -> one dump; gen(x, y, z) -> tuple of dumps."""
        if not args:
            raise ValueError("No data provided to HistoryDumpGenerator.")
        if len(args) == 1:
            return self.create(args[0])
        return tuple(self.create(d) for d in args)
