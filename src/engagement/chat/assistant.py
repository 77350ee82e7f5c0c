"""Support assistant: answers customer questions while a session is AI-handled.

Answers come from the text generator, constrained to the approved
knowledge-base articles. The reply is posted into the session as an agent
message. Once an agent takes the session over, the assistant stays quiet.
"""

from dataclasses import dataclass

import structlog

from engagement.chat.manager import ChatSessionManager
from engagement.chat.message import ChatMessage, Sender
from shared.text import TextGenerator, generate_or_fallback

logger = structlog.get_logger(__name__)

OFFLINE_REPLY = "I'm currently offline. Please try again later."
FALLBACK_REPLY = "I couldn't process that request right now."

ANSWER_PROMPT = """
You are '{assistant_name}', a customer support agent for a salad subscription brand.

BUSINESS KNOWLEDGE BASE:
{knowledge}

INSTRUCTIONS:
1. Answer the user's question using ONLY the information provided in the KNOWLEDGE BASE above.
2. If the answer is found in the KNOWLEDGE BASE, provide a concise and helpful response.
3. If the answer is NOT found in the KNOWLEDGE BASE, apologize and say: "I don't have the information for that specific query. I have notified a human agent to assist you shortly."
4. Do not make up information. Do not hallucinate policies.
5. Be polite and professional.
6. Always reply in the same language the user asked the question in.

USER QUESTION: "{question}"
"""


@dataclass(frozen=True)
class KnowledgeArticle:
    title: str
    content: str
    approved: bool = True


DEFAULT_KNOWLEDGE = (KnowledgeArticle("Refund Policy", "Refunds within 24h of delivery."),)


class SupportAssistant:
    def __init__(
        self,
        manager: ChatSessionManager,
        generator: TextGenerator | None,
        knowledge=DEFAULT_KNOWLEDGE,
        assistant_name: str = "Store Assistant",
    ):
        self.manager = manager
        self.generator = generator
        self.knowledge = list(knowledge)
        self.assistant_name = assistant_name

    def knowledge_context(self) -> str:
        return "\n\n".join(f"Q: {a.title}\nA: {a.content}" for a in self.knowledge if a.approved)

    def build_prompt(self, question: str) -> str:
        return ANSWER_PROMPT.format(
            assistant_name=self.assistant_name,
            knowledge=self.knowledge_context(),
            question=question,
        )

    async def answer(self, question: str) -> str:
        return await generate_or_fallback(
            self.generator,
            self.build_prompt(question),
            fallback=FALLBACK_REPLY,
            offline_fallback=OFFLINE_REPLY,
        )

    async def reply(self, session_id, question: str) -> ChatMessage | None:
        """Answer ``question`` in the session, unless an agent has taken it over."""
        session = await self.manager.get_session(session_id)
        if not session.is_ai_handled or session.is_closed:
            return None

        text = await self.answer(question)

        # The customer may have ended the chat, or an agent taken over, while we waited
        session = await self.manager.get_session(session_id)
        if not session.is_ai_handled or session.is_closed:
            logger.info("Dropping assistant reply", session_id=str(session_id))
            return None

        return await self.manager.send_message(session_id, text, Sender.AGENT)
