"""
Reply formatting — plain-text lines for chat replies.
"""

from typing import List, Optional

from models.records import Record

DISCORD_MESSAGE_LIMIT = 1900


def fmt_time(seconds: float) -> str:
    """123.456 -> '02:03.456', 3723.5 -> '01:02:03.500'."""
    millis = int(round((seconds - int(seconds)) * 1000))
    whole = int(seconds)
    if millis == 1000:
        whole, millis = whole + 1, 0
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    text = f"{minutes:02}:{secs:02}.{millis:03}"
    if hours:
        text = f"{hours:02}:{text}"
    return text


def format_record(label: str, record: Optional[Record]) -> str:
    """One line per record: `TP: 01:23.456 by Player (3 TPs)`."""
    if record is None:
        return f"{label}: no record"
    teleports = ""
    if record.teleports:
        teleports = f" ({record.teleports} TP{'s' if record.teleports != 1 else ''})"
    return f"{label}: {fmt_time(record.time)} by {record.player_name or 'unknown'}{teleports}"


def chunk_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """Split on line breaks into chunks below Discord's message limit."""
    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
