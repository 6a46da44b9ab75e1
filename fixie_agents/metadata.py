"""Agent descriptions rendered into the YAML handshake by `metadata_yaml()`.

Field names are part of the handshake document and must not be renamed.
"""

from typing import List, Literal, Optional, Union

from pydantic import dataclasses as pydantic_dataclasses

from fixie_agents import llm_settings


@pydantic_dataclasses.dataclass
class StandaloneAgentMetadata:
    """Describes an agent that answers queries with its own `handle_message`.

    Attributes:
        sample_queries: Example queries shown to users of the agent.
    """

    sample_queries: Optional[List[str]] = None
    type: Literal["standalone"] = "standalone"


@pydantic_dataclasses.dataclass
class CodeShotAgentMetadata:
    """Describes an agent driven by a base prompt plus few-shot examples.

    Attributes:
        base_prompt: Instructions that precede every few-shot.
        few_shots: Worked examples, already stripped of surrounding whitespace.
        conversational: Whether each few-shot may hold several Q: and A: turns.
        response_model: LLM overrides; the platform default is used when unset.
    """

    base_prompt: str
    few_shots: List[str]
    conversational: bool = False
    response_model: Optional[llm_settings.LlmSettings] = None
    type: Literal["code_shot"] = "code_shot"


# Every agent class returns one of these from `metadata()`.
Metadata = Union[StandaloneAgentMetadata, CodeShotAgentMetadata]
