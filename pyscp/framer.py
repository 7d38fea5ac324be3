"""Split an SCP byte stream into complete lines."""

LINE_FEED = b"\n"


def feed(pending: bytes, chunk: bytes) -> tuple[list[str], bytes]:
    """Append ``chunk`` to ``pending`` and cut out every complete line.

    Returns the decoded lines and the new pending bytes (an unterminated tail,
    or ``b""``). Empty lines are dropped.
    """
    buffer = pending + chunk
    segments = buffer.split(LINE_FEED)
    # The last segment is either b"" (buffer ended on a line feed) or a partial line
    pending = segments.pop()

    lines = []
    for segment in segments:
        line = segment.decode("utf-8", errors="replace").rstrip("\r")
        if line:
            lines.append(line)
    return lines, pending


class LineFramer:
    def __init__(self):
        self._pending = b""

    @property
    def pending(self) -> bytes:
        return self._pending

    def feed(self, chunk: bytes) -> list[str]:
        lines, self._pending = feed(self._pending, chunk)
        return lines

    def reset(self) -> None:
        self._pending = b""
