from __future__ import annotations

from collections.abc import Iterator, Sequence
from html import escape

from obs_delay.state import DelayReading

PAGE_TITLE = "OBS Render Delay Control"

_PAGE_CSS = """
table { width: 90%; margin: 0 auto; border-collapse: collapse; }
td { width: 50%; vertical-align: top; padding: 16px; }
h3 { margin: 0 0 8px 0; }
"""


def pair_rows(
    readings: Sequence[DelayReading],
) -> Iterator[tuple[DelayReading, DelayReading | None]]:
    """Yield readings two per row in order; an odd last reading gets None beside it."""
    for i in range(0, len(readings), 2):
        second = readings[i + 1] if i + 1 < len(readings) else None
        yield readings[i], second


def display_delay(reading: DelayReading) -> str:
    return f"{reading.delay_ms} ms" if reading.available else "(Error)"


def build_camera_cell(reading: DelayReading) -> str:
    """Name, current delay and an update form for one source."""
    name = escape(reading.source_name, quote=True)
    value = reading.delay_ms if reading.available else 0
    return f"""
    <h3>{name}</h3>
    <p><strong>Current Delay:</strong> {escape(display_delay(reading))}</p>
    <form action="/update-delay" method="POST">
      <input type="hidden" name="cameraName" value="{name}" />
      <label>New Delay (ms):
        <input type="number" name="newDelay" value="{value}" style="width:80px;" />
      </label>
      <button type="submit">Update</button>
    </form>
    """


def render_list_page(readings: Sequence[DelayReading]) -> str:
    rows = []
    for first, second in pair_rows(readings):
        col2 = build_camera_cell(second) if second is not None else ""
        rows.append(f"<tr><td>{build_camera_cell(first)}</td><td>{col2}</td></tr>")
    table_rows = "\n".join(rows)
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{PAGE_TITLE}</title>
  <style>{_PAGE_CSS}</style>
</head>
<body>
  <h1>{PAGE_TITLE}</h1>
  <table border="1">
    <tbody>
      {table_rows}
    </tbody>
  </table>
</body>
</html>
"""
