"""Append-only transcript of successful turns, and the final summary built from it."""

from dataclasses import dataclass

from .models import Agent

NO_RESPONSES_SUMMARY = "No responses were generated during this debate."
SUMMARY_PREVIEW_LINES = 5


@dataclass(frozen=True)
class TranscriptRecord:
    round_number: int
    agent_id: int | None
    agent_name: str
    content: str

    def render(self) -> str:
        return f"Round {self.round_number} - {self.agent_name} ({self.agent_id}):\n{self.content}"


class Transcript:
    """Ordered record of who said what, shown to later speakers as context.

    Only successful turns are added. Records are never edited or removed,
    so the text seen by a speaker contains exactly the turns that finished
    before it.
    """

    def __init__(self) -> None:
        self._records: list[TranscriptRecord] = []

    def add(self, round_number: int, agent: Agent, content: str) -> TranscriptRecord:
        record = TranscriptRecord(round_number, agent.id, agent.name, content)
        self._records.append(record)
        return record

    @property
    def records(self) -> tuple[TranscriptRecord, ...]:
        return tuple(self._records)

    @property
    def text(self) -> str:
        return "\n\n".join(record.render() for record in self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)


def generate_summary(topic: str, transcript_text: str) -> str:
    """Build the deterministic closing summary for a discussion."""
    if not transcript_text:
        return NO_RESPONSES_SUMMARY

    summary = f"Debate Summary for: {topic}\n\n"
    summary += "The debate involved multiple AI agents discussing this topic. "
    summary += "Each agent provided their perspective and responded to others' arguments. "
    summary += "For detailed discussion, please review the individual agent responses.\n\n"

    lines = transcript_text.split("\n")
    summary += "Key points discussed:\n"
    for line in lines[:SUMMARY_PREVIEW_LINES]:
        if line.strip():
            summary += f"- {line.strip()}\n"
    if len(lines) > SUMMARY_PREVIEW_LINES:
        summary += "... (see full discussion for more details)"

    return summary
