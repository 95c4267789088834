"""Prompt construction for participants and the moderator."""

from .models import Discussion
from .types import ModeratorTurn


class PromptBuilder:
    """Builds round and moderator instructions for a discussion.

    Length and language are restated as hard instructions in every prompt.
    Only length is enforced afterwards, by truncation in the engine.
    """

    def _hard_limits(self, discussion: Discussion) -> str:
        return (
            f"- DO NOT EXCEED {discussion.max_char_limit} CHARACTERS\n"
            f"- RESPOND ONLY IN {discussion.language.upper()}\n"
        )

    def initial_prompt(self, discussion: Discussion) -> str:
        """First-round instruction asking for an initial perspective."""
        return (
            f'You are an agent in a multi-agent debate about: "{discussion.topic}"\n\n'
            f"Language of discussion: {discussion.language}\n"
            f"Maximum response length: {discussion.max_char_limit} characters\n\n"
            "This is the first round. Please provide your initial perspective on this topic.\n\n"
            "Guidelines:\n"
            "- Provide a clear, thoughtful response\n"
            "- Consider multiple perspectives\n"
            "- Be specific and provide reasoning\n"
            + self._hard_limits(discussion)
        )

    def round_prompt(
        self, discussion: Discussion, round_number: int, agent_number: int, total_agents: int
    ) -> str:
        """Later-round instruction asking the agent to answer earlier arguments."""
        return (
            f'This is Round {round_number} of the debate about: "{discussion.topic}"\n\n'
            f"Language of discussion: {discussion.language}\n"
            f"Maximum response length: {discussion.max_char_limit} characters\n\n"
            f"You are Agent #{agent_number} of {total_agents}. "
            "Please respond to the previous arguments from other agents.\n\n"
            "Guidelines:\n"
            "- Address specific points made by other agents\n"
            "- Defend or modify your position based on new information\n"
            "- Find common ground where possible\n"
            "- Move the discussion toward resolution\n"
            + self._hard_limits(discussion)
        )

    def prompt_for_turn(
        self, discussion: Discussion, round_number: int, agent_number: int, total_agents: int
    ) -> str:
        if round_number == 1:
            return self.initial_prompt(discussion)
        return self.round_prompt(discussion, round_number, agent_number, total_agents)

    def moderator_prompt(
        self, discussion: Discussion, turn: ModeratorTurn | str, context: str = ""
    ) -> str:
        """Self-contained moderator instruction for one interjection kind."""
        language = discussion.language
        limit = discussion.max_char_limit
        base = (
            f'You are the moderator for a multi-agent debate on: "{discussion.topic}"\n'
            f"Language: {language}\n"
            f"Max length: {limit} characters\n\n"
        )
        closing_rule = f"RESPOND ONLY IN {language.upper()}. DO NOT EXCEED {limit} CHARACTERS."

        if turn == ModeratorTurn.OPENING:
            body = (
                "Your role is to:\n"
                "1. Welcome participants and set the tone\n"
                "2. Briefly explain the debate format and rules\n"
                "3. Remind agents to be respectful and constructive\n"
                "4. Introduce the topic and initial considerations\n\n"
                "Please provide a concise opening statement (2-3 paragraphs).\n"
            )
        elif turn == ModeratorTurn.INTERIM:
            body = (
                f'An agent just responded with:\n\n"{context}"\n\n'
                "Your role is to:\n"
                "1. Briefly acknowledge the key points made\n"
                "2. Keep the discussion focused and on track\n"
                "3. Encourage the next agent to build upon or challenge these points\n"
                "4. Maintain a respectful and constructive tone\n\n"
                "Please provide a brief moderation comment (1-2 paragraphs).\n"
            )
        elif turn == ModeratorTurn.ROUND_SUMMARY:
            body = (
                f"{context or 'Round completed'}.\n\n"
                "Your role is to:\n"
                "1. Summarize the key arguments and perspectives from this round\n"
                "2. Highlight areas of agreement and disagreement\n"
                "3. Point out any logical fallacies or particularly strong arguments\n"
                "4. Set up the next round of discussion\n\n"
                "Please provide a concise round summary (2-3 paragraphs).\n"
            )
        elif turn == ModeratorTurn.CLOSING:
            body = (
                "The debate has concluded. Your role is to:\n"
                "1. Provide a balanced summary of all positions presented\n"
                "2. Identify the strongest arguments and key insights\n"
                "3. Highlight areas of consensus and remaining disagreement\n"
                "4. Offer final thoughts on the topic and the quality of the discussion\n\n"
                "Please provide a comprehensive closing statement (3-4 paragraphs).\n"
            )
        else:
            return (
                f"{base}Please provide appropriate moderation in {language}. "
                f"DO NOT EXCEED {limit} CHARACTERS."
            )

        return base + body + closing_rule
