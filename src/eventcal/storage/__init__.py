from .events_file import (
    EventStoreWriteError,
    ensure_data_file,
    find_event_index,
    next_event_id,
    parse_events,
    read_events,
    read_records,
    seed_events,
    write_events,
    write_records,
)

__all__ = [
    "EventStoreWriteError",
    "ensure_data_file",
    "find_event_index",
    "next_event_id",
    "parse_events",
    "read_events",
    "read_records",
    "seed_events",
    "write_events",
    "write_records",
]
