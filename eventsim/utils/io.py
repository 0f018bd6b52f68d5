# eventsim/utils/io.py
"""
IO helpers for exporting the processed-event history, traces and failures.
"""
import json
from typing import Any, Dict, Iterable, List
from pathlib import Path

from ..core.event_queue import Event
from ..core.process import FailureRecord, TraceRecord


def event_to_dict(event: Event) -> Dict[str, Any]:
    """Flatten an event into JSON-friendly values."""
    return {
        "event_id": event.event_id,
        "time": event.time,
        "sequence": event.sequence,
        "kind": event.kind.value,
        "process_id": event.process_id,
        "name": event.name,
        "resource_id": event.resource_id,
        "value": event.value,
    }


def save_json(obj: Any, file_path: str, indent: int = 2):
    """Save object as JSON."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(obj, f, indent=indent, default=repr)


def load_json(file_path: str) -> Any:
    """Load JSON file."""
    with open(file_path, 'r') as f:
        return json.load(f)


def save_history(events: Iterable[Event], file_path: str,
                 traces: Iterable[TraceRecord] = (),
                 failures: Iterable[FailureRecord] = ()):
    """Write a run's history to a JSON file.

    Values that JSON cannot represent are stored as their repr.
    """
    save_json({
        "events": [event_to_dict(e) for e in events],
        "traces": [
            {"time": t.time, "process_id": t.process_id, "data": t.data}
            for t in traces
        ],
        "failures": [
            {"process_id": f.process_id, "name": f.name, "time": f.time, "reason": f.reason}
            for f in failures
        ],
    }, file_path)


def load_history(file_path: str) -> List[Dict[str, Any]]:
    """Load the event records written by ``save_history``."""
    data = load_json(file_path)
    if isinstance(data, list):
        return data
    return data.get("events", [])
