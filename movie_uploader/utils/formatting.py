"""Human readable formatting helpers."""


def format_file_size(num_bytes: int) -> str:
    """Render a byte count with a binary unit, e.g. ``5 MB`` or ``1.5 KB``."""
    sizes = ["Bytes", "KB", "MB", "GB"]
    if num_bytes <= 0:
        return "0 Bytes"
    unit = 0
    value = float(num_bytes)
    while value >= 1024 and unit < len(sizes) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {sizes[unit]}"
