"""Location trace recording and playback."""

import json
import time
from datetime import datetime
from typing import Iterator, Optional

from .models import LocationSample
from .routes import RouteFileError


class TraceRecorder:
    """Records location samples to a trace file"""

    def __init__(self, record_path: str, start_time: Optional[float] = None):
        self.record_path = record_path
        self.trace: list[dict] = []
        self.start_time = start_time if start_time is not None else time.time()

    def record(self, sample: Optional[LocationSample], status: str = "OK"):
        """Record a sample; None records a failed fix"""
        timestamp = sample.timestamp if sample and sample.timestamp is not None else time.time()
        self.trace.append({
            "elapsed": timestamp - self.start_time,
            "timestamp": timestamp,
            "location": sample.to_dict() if sample else None,
            "status": status,
        })

    def save(self):
        """Save trace to file"""
        save_trace(self.record_path, self.trace)
        print(f"Trace saved to {self.record_path} ({len(self.trace)} entries)")


def save_trace(path: str, trace: list[dict]):
    with open(path, "w") as f:
        json.dump({
            "recorded_at": datetime.now().isoformat(),
            "trace": trace,
        }, f, indent=2)


def load_trace(path: str) -> list[dict]:
    """Load trace entries from a recorder file.

    Raises:
        RouteFileError: if the file is missing or not a trace
    """
    try:
        with open(path) as f:
            data = json.load(f)
        return data["trace"]
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
        raise RouteFileError(f"Cannot read trace {path}: {e}") from e


class TracePlayback:
    """Plays back a recorded trace as a stream of location samples.

    Samples keep their recorded spacing; entries without a timestamp get
    one derived from the trace's elapsed time and start_time.
    """

    def __init__(self, playback_path: str, start_time: float = 0.0):
        self.playback_path = playback_path
        self.start_time = start_time
        self.trace = load_trace(playback_path)
        self.index = 0
        self.consecutive_failures = 0

    def next_sample(self) -> Optional[LocationSample]:
        """Get next sample from trace sequentially, None for a failed fix"""
        if self.index >= len(self.trace):
            return None

        entry = self.trace[self.index]
        self.index += 1

        if not entry.get("location"):
            self.consecutive_failures += 1
            return None

        sample = LocationSample.from_dict(entry["location"])
        if sample.timestamp is None:
            sample.timestamp = self.start_time + entry.get("elapsed", 0)
        self.consecutive_failures = 0
        return sample

    def samples(self) -> Iterator[LocationSample]:
        """Iterate over every valid sample left in the trace"""
        while not self.is_finished():
            sample = self.next_sample()
            if sample is not None:
                yield sample

    def is_finished(self) -> bool:
        return self.index >= len(self.trace)

    def get_status(self) -> str:
        progress = f"{self.index}/{len(self.trace)}"
        if self.consecutive_failures == 0:
            return f"Playback OK ({progress})"
        return f"Playback: {self.consecutive_failures} failures ({progress})"
