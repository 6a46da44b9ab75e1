"""Client-side handling of few-shot prompts.

A few-shot is a short transcript that shows the platform how an agent should
answer a query. Each line starts with one of the prefixes in `LinePattern`;
lines with no prefix continue the previous one. For example:

    Q: Replace the background in #image1 with a beautiful sunset
    Ask Func[edit]: A beautiful sunset #image1
    Func[edit] says: Here you go: #image2
    A: I replaced the background with a beautiful sunset: #image2

`#key` refers to an Embed of the message; `##` is a literal "#".
"""

import enum
import re
from typing import Callable, List, Optional, Set

from fixie_agents.api import EMBED_REF

_WHITESPACE = (" ", "\t", "\r")


class LinePattern(enum.Enum):
    QUERY = re.compile(r"^Q:")
    AGENT_SAYS = re.compile(r"^Agent\[(?P<agent_id>\w+)] says:")
    FUNC_SAYS = re.compile(r"^Func\[(?P<func_name>\w+)] says:")
    ASK_AGENT = re.compile(r"^Ask Agent\[(?P<agent_id>\w+)]:")
    ASK_FUNC = re.compile(r"^Ask Func\[(?P<func_name>\w+)]:")
    RESPONSE = re.compile(r"^A:")

    @classmethod
    def match(cls, line: str) -> Optional["re.Match[str]"]:
        """Returns the match of the pattern that `line` starts with, or None."""
        if "\n" in line:
            raise ValueError(
                "Cannot get the pattern for a multi-line text. Patterns must be "
                "extracted one line at a time."
            )
        for pattern in cls:
            match = pattern.value.match(line)
            if match is None:
                continue
            if pattern is cls.QUERY and match.end() == len(line):
                raise ValueError("A 'Q:' line cannot end without a query.")
            return match
        return None

    @classmethod
    def of(cls, match: Optional["re.Match[str]"]) -> Optional["LinePattern"]:
        return None if match is None else cls(match.re)


# New embeds may only be introduced by the user or by responses of other agents
# and funcs.
_NO_NEW_EMBEDS = (LinePattern.ASK_AGENT, LinePattern.ASK_FUNC, LinePattern.RESPONSE)


def split_few_shots(few_shots: str) -> List[str]:
    """Splits a block of few-shots separated by blank lines into a list."""
    few_shots = "\n".join(line.strip() for line in few_shots.splitlines())
    splits = few_shots.split("\n\nQ:")
    return [splits[0]] + ["Q:" + few_shot for few_shot in splits[1:]]


def strip_prompt_lines(prompt: str) -> str:
    """Strips the prompt and each of its lines."""
    return "\n".join(line.strip() for line in prompt.strip().splitlines())


def validate_base_prompt(base_prompt: str):
    if base_prompt.startswith("\n") or base_prompt.endswith("\n"):
        raise ValueError(
            "base_prompt should not start or end in newlines. "
            f"base_prompt={base_prompt!r}."
        )
    bad_lines = _lines_with_outer_whitespace(base_prompt.split("\n"))
    if bad_lines:
        raise ValueError(
            f"Some lines in the base prompt start or end in whitespaces: {bad_lines!r}."
        )


def validate_few_shot(
    prompt: str, conversational: bool, is_valid_func_name: Callable[[str], bool]
):
    """Validates `prompt` as a correctly formatted few-shot.

    Raises:
        ValueError: describing the first problem found.
    """
    lines = prompt.splitlines()

    bad_lines = _lines_with_outer_whitespace(lines)
    _check(
        not bad_lines,
        f"Some lines in the fewshot start or end in whitespaces: {bad_lines!r}",
        prompt,
    )
    _check(not prompt.endswith("\n"), "Fewshot ends with newline", prompt)
    _check(bool(lines), "Fewshot is empty", prompt)

    matches = [LinePattern.match(line) for line in lines]
    patterns = [LinePattern.of(match) for match in matches]
    _check(
        patterns[0] is LinePattern.QUERY, "Fewshot must start with a 'Q:'", prompt
    )

    last_pattern = LinePattern.QUERY
    known_embeds: Set[str] = set()
    for i, line in enumerate(lines):
        match, pattern = matches[i], patterns[i]
        next_match = matches[i + 1] if i + 1 < len(lines) else None
        next_pattern = patterns[i + 1] if i + 1 < len(lines) else None

        if pattern is LinePattern.ASK_AGENT:
            _check(
                next_pattern is LinePattern.AGENT_SAYS
                and match.group("agent_id") == next_match.group("agent_id"),
                "Each 'Ask Agent' line must be immediately followed by an "
                "'Agent says' line that references the same agent",
                prompt,
            )
        elif pattern is LinePattern.ASK_FUNC:
            _check(
                next_pattern is LinePattern.FUNC_SAYS
                and match.group("func_name") == next_match.group("func_name"),
                "Each 'Ask Func' line must be immediately followed by a "
                "'Func says' line that references the same func",
                prompt,
            )
        if pattern in (LinePattern.ASK_FUNC, LinePattern.FUNC_SAYS):
            _check(
                is_valid_func_name(match.group("func_name")),
                f"Func[{match.group('func_name')}] is not a valid func name",
                prompt,
            )

        if pattern is not None:
            last_pattern = pattern

        for embed_key in (m.group("embed_key") for m in EMBED_REF.finditer(line)):
            if embed_key not in known_embeds:
                _check(
                    last_pattern not in _NO_NEW_EMBEDS,
                    "New embeds may not be introduced in Ask Agent, Ask Func, "
                    "or A: lines",
                    prompt,
                )
                known_embeds.add(embed_key)

    _check(
        last_pattern is LinePattern.RESPONSE,
        f"Fewshot must end with an 'A:' line, but it ends with {last_pattern}",
        prompt,
    )

    # One letter per recognized line: Q for queries, A for responses, x otherwise.
    qa_str = "".join(
        "Q"
        if pattern is LinePattern.QUERY
        else "A"
        if pattern is LinePattern.RESPONSE
        else "x"
        for pattern in patterns
        if pattern is not None
    )
    if conversational:
        _check(
            re.fullmatch("(Qx*A)+", qa_str) is not None,
            "Each fewshot must have interleaved Q: and A: lines when "
            "conversational=True",
            prompt,
        )
    else:
        _check(
            re.fullmatch("Qx*A", qa_str) is not None,
            "Each fewshot must have exactly one Q: and A: line when "
            "conversational=False",
            prompt,
        )


def _lines_with_outer_whitespace(lines: List[str]) -> List[str]:
    return [
        line for line in lines if line.startswith(_WHITESPACE) or line.endswith(_WHITESPACE)
    ]


def _check(condition: bool, msg: str, prompt: str):
    if not condition:
        raise ValueError(f"{msg} in few-shot prompt: {prompt!r}.")
