"""Labelled counters rendered in the Prometheus text format."""

from __future__ import annotations

import threading
from typing import Iterable, Sequence


def _escape(text: str, quote: bool = False) -> str:
    text = text.replace("\\", "\\\\").replace("\n", "\\n")
    return text.replace('"', '\\"') if quote else text


class CounterVec:
    """A family of counters distinguished by label values."""

    def __init__(self, name: str, help: str, label_names: Sequence[str]) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._values: dict[tuple[str, ...], float] = {}
        self._lock = threading.Lock()

    def _key(self, labels: Sequence[str]) -> tuple[str, ...]:
        if len(labels) != len(self.label_names):
            raise ValueError(f"{self.name}: expected {len(self.label_names)} label values, got {len(labels)}")
        return tuple(map(str, labels))

    def inc(self, *args: str) -> None:
        """Add one to the counter with these label values."""
        key = self._key(args)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + 1.0

    def value(self, *args: str) -> float:
        """Return the current value of the counter with these label values."""
        key = self._key(args)
        with self._lock:
            return self._values.get(key, 0.0)

    def render(self) -> str:
        """Return the family in the text exposition format, or '' if it is empty."""
        with self._lock:
            series = sorted(self._values.items())
        if not series:
            return ""
        lines = [f"# HELP {self.name} {_escape(self.help)}", f"# TYPE {self.name} counter"]
        for labels, value in series:
            pairs = ",".join(f'{n}="{_escape(v, quote=True)}"' for n, v in zip(self.label_names, labels))
            number = str(int(value)) if value.is_integer() and abs(value) < 1e21 else repr(value)
            lines.append(f"{self.name}{{{pairs}}} {number}" if pairs else f"{self.name} {number}")
        return "\n".join(lines) + "\n"


def render_metrics(counters: Iterable[CounterVec]) -> str:
    """Render several counter families one after another."""
    return "".join(counter.render() for counter in counters)