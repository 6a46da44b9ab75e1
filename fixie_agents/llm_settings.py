from typing import Optional

from pydantic import dataclasses as pydantic_dataclasses


@pydantic_dataclasses.dataclass
class LlmSettings:
    """Settings for the language model that answers a CodeShot agent's queries.

    Unset fields fall back to the platform's defaults.
    """

    # The model name, e.g. "openai/gpt-4".
    model: Optional[str] = None

    # Sampling temperature; lower is more deterministic.
    temperature: Optional[float] = None

    # Upper bound on the number of tokens in a response.
    maximum_tokens: Optional[int] = None
