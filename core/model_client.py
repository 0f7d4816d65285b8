"""
Model clients that turn a prompt into raw reply text.
The analyzer only depends on the ModelClient protocol, so any backend
(or a test stub) can be injected.
"""
from typing import List, Optional, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import StrOutputParser

from exceptions import ModelUnavailableError
from runtime.rate_limit import classify_provider_error, get_status_code


class ModelClient(Protocol):
    """One request/response round trip to a generative-text backend."""

    def generate(self, prompt: str) -> str:
        """Return the raw reply text or raise ModelUnavailableError."""

    async def agenerate(self, prompt: str) -> str:
        """Async variant of generate."""


class LangChainModelClient:
    """ModelClient backed by any LangChain chat model."""

    def __init__(self, llm: BaseChatModel, system_message: Optional[str] = None):
        self.llm = llm
        self.system_message = system_message
        self.chain = llm | StrOutputParser()

    def _messages(self, prompt: str) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        if self.system_message:
            messages.append(SystemMessage(content=self.system_message))
        messages.append(HumanMessage(content=prompt))
        return messages

    def generate(self, prompt: str) -> str:
        try:
            reply = self.chain.invoke(self._messages(prompt))
        except Exception as e:
            raise provider_failure(e) from e
        return _require_text(reply)

    async def agenerate(self, prompt: str) -> str:
        try:
            reply = await self.chain.ainvoke(self._messages(prompt))
        except Exception as e:
            raise provider_failure(e) from e
        return _require_text(reply)


DRY_RUN_REPLY = """Engagement: 16
The agent greeted the customer warmly and kept the conversation friendly.
Clarity: 15
Course duration and fees were explained in plain language.
Product Knowledge: 14
The agent described the program but gave few details about the curriculum.
Listening Skills: 13
Customer questions were answered, though follow-up questions were rare.
Handling Objections: 12
No real objections came up, so this skill was only lightly tested.
Closing Techniques: 10
The call ended without a clear next step or commitment.

Recommendations:
- Confirm a concrete next step before ending the call.
- Ask open questions to uncover the customer's goals.
"""


class DryRunModelClient:
    """Offline client that returns a canned, well-formed reply."""

    def __init__(self, reply: str = DRY_RUN_REPLY):
        self.reply = reply

    def generate(self, prompt: str) -> str:
        return self.reply

    async def agenerate(self, prompt: str) -> str:
        return self.reply


def provider_failure(error: Exception) -> ModelUnavailableError:
    reason = classify_provider_error(error)
    return ModelUnavailableError(
        f"Model request failed ({reason}): {type(error).__name__}: {error}",
        reason=reason,
        status_code=get_status_code(error),
    )


def _require_text(reply) -> str:
    if not isinstance(reply, str) or not reply.strip():
        raise ModelUnavailableError("Model returned an empty reply", reason="empty_reply")
    return reply
