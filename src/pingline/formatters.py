from __future__ import annotations

import json
from enum import Enum
from typing import Callable, Dict

from .sample import Sample

Formatter = Callable[[Sample], str]


class OutputFormat(str, Enum):
    HUMAN = "human"
    CSV = "csv"
    JSON = "json"

    def __str__(self) -> str:
        return self.value


def format_human(sample: Sample) -> str:
    return f"{sample.timestamp:.6f}: {sample.rtt:.6f} ms"


def format_csv(sample: Sample) -> str:
    return f"{sample.timestamp:.6f},{sample.rtt}"


def format_json(sample: Sample) -> str:
    """Encode as a JSON object; an unencodable sample renders as ""."""
    try:
        return json.dumps(
            {"timestamp": sample.timestamp, "rtt": sample.rtt}, allow_nan=False
        )
    except (TypeError, ValueError):
        return ""


FORMATTERS: Dict[OutputFormat, Formatter] = {
    OutputFormat.HUMAN: format_human,
    OutputFormat.CSV: format_csv,
    OutputFormat.JSON: format_json,
}


def get_formatter(fmt: OutputFormat | str) -> Formatter:
    """Resolve the formatter once at startup. Unknown names raise ValueError."""
    return FORMATTERS[OutputFormat(fmt)]
