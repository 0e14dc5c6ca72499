from typing import Iterable

def range_start(token_number: int, size: int = 100) -> int:
    return (token_number // size) * size

def available_ranges(token_numbers: Iterable[int], size: int = 100) -> set[int]:
    """Starts of every range that holds at least one token."""
    return {range_start(int(n), size) for n in token_numbers}

def range_label(start: int, size: int = 100) -> str:
    return f"{start} - {start + size - 1}"

def build_ranges(total_count: int, available: set[int], size: int = 100) -> list[dict]:
    # cover every minted token even when totalCount lags behind
    upper = max([total_count] + [start + size for start in available])
    return [
        {
            "start": start,
            "end": start + size - 1,
            "label": range_label(start, size),
            "available": start in available,
        }
        for start in range(0, upper, size)
    ]
