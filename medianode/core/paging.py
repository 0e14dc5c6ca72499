def page_offset(page_num: int, page_size: int) -> int:
    """Row offset for a 1-based page number."""
    return (max(page_num, 1) - 1) * page_size
