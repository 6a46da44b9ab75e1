import pytest

from fixie_agents import fewshot


class Conversational(str):
    """Marks a prompt that must be validated with conversational=True."""


BAD_PROMPTS = [
    # Ask Agent without Agent says
    """Q: Who is the president?
Ask Agent[search]: Who is the president?
A: It's Joe Biden.""",
    # Doesn't start with a query
    """Ask Agent[search]: Who is the president?
Q: Who is the president?
A: It's Joe Biden.""",
    # Ask Func without Func says
    """Q: How many books are there in the library?
Ask Func[library]: How many books are there in the library?
A: I don't know.""",
    # Doesn't end with a response
    """Q: What is 12 + 15?
Agent[calc] says: 27""",
    # Two queries
    """Q: What is the life expectancy in the US?
Q: Do we need to call an agent?
A: No we don't.""",
    # Two responses
    """Q: What is the life expectancy in the US?
A: I think it's 80 years but I'm not sure.
A: I'm not sure.""",
    # Trailing whitespace
    """Q: What is the life expectancy in the US?
A: I think it's 80 years but I'm not sure. """,
    # Trailing newline
    """Q: What is the life expectancy in the US?
A: I think it's 80 years but I'm not sure.
""",
    # Leading newline and indentation
    """
Q: What is the life expectancy in the US?
    A: I think it's 80 years but I'm not sure.""",
    # Unregistered func
    """Q: How many books are there in the library?
Ask Func[invalid_library]: How many books are there in the library?
Func[invalid_library] says: Many
A: There are many books in the library.""",
    # Unregistered func without an Ask line
    """Q: How many books are there in the library?
Func[invalid_library] says: Many
A: There are many books in the library.""",
    # Mismatched func names
    """Q: How many books are there in the library?
Ask Func[library]: How many books are there in the library?
Func[bibliothèque] says: Many
A: There are many books in the library.""",
    # Mismatched agent names
    """Q: How many books are there in the library?
Ask Agent[library]: How many books are there in the library?
Agent[bibliothèque] says: Many
A: There are many books in the library.""",
    # Conversational without setting the flag
    """Q: Think of your favorite color
A: Okay, I'm thinking of it.
Q: Is it red?
A: No, it's not red.""",
    # Agent calls can't sit between an answer and the next question
    Conversational(
        """Q: Think of your favorite color
A: Okay, I'm thinking of it.
Ask Agent[library]: How many books are in the library?
Agent[library] says: I shouldn't be invoked between questions.
Q: Is it blue?
A: Yes, it's blue!"""
    ),
    # Ask Agent lines can't introduce new embeds
    """Q: What's the weather?
Ask Agent[weather]: What's the weather in #image1
Agent[weather] says: cloudy.
A: It's cloudy.""",
    # Ask Func lines can't introduce new embeds
    """Q: What's the weather?
Ask Func[weather]: #image1
Func[weather] says: cloudy.
A: It's cloudy.""",
    # Response lines can't introduce new embeds
    """Q: What's the weather?
A: Here's a picture of the weather #image1""",
    # Query lines must have a query
    """Q:
A: That's not a question!""",
    # Empty
    "",
]

GOOD_PROMPTS = [
    """Q: Who is the president?
Ask Agent[search]: Who is the president?
Agent[search] says: It's Joe Biden.
A: It's Joe Biden.""",
    """Q: How many books are there in the library?
Ask Func[library]: How many books are there in the library?
Func[library] says: None
A: I don't know.""",
    """Q: How many books are there in the library?
Func[library] says: Many
A: There are many books in the library""",
    """Q: What is the life expectancy in the US?
A: I think it's 80 years
but I'm not sure.""",
    """Q: Replace the background in #image1 with a beautiful sunset
Ask Agent[mask2former]: Mask out the background in #image1
Agent[mask2former] says: I have masked out the selected region: #mask1
Ask Func[edit]: A beautiful sunset #image1 #mask1
Func[edit] says: Here you go: #image2
A: I replaced the background with a beautiful sunset: #image2""",
    Conversational(
        """Q: Think of your favorite color
A: Okay, I'm thinking of it.
Q: Is it red?
A: No, it's not red.
Q: Is it blue?
A: Yes, it's blue!"""
    ),
    """Q: Who is tweeting with the fixie hashtag?
Ask Func[fixie_search]: ##fixie
Func[fixie_search] says: @fixie
A: @fixie is currently tweeting with the fixie hashtag""",
]


@pytest.fixture
def is_valid_func_name():
    return lambda name: not name.startswith("invalid")


@pytest.mark.parametrize("bad_prompt", BAD_PROMPTS)
def test_validate_few_shot_fails_with_bad_prompt(bad_prompt, is_valid_func_name):
    with pytest.raises(ValueError):
        fewshot.validate_few_shot(
            str(bad_prompt),
            conversational=isinstance(bad_prompt, Conversational),
            is_valid_func_name=is_valid_func_name,
        )


@pytest.mark.parametrize("good_prompt", GOOD_PROMPTS)
def test_validate_few_shot_succeeds_with_good_prompt(good_prompt, is_valid_func_name):
    fewshot.validate_few_shot(
        str(good_prompt),
        conversational=isinstance(good_prompt, Conversational),
        is_valid_func_name=is_valid_func_name,
    )


def test_line_pattern_match():
    match = fewshot.LinePattern.match("Ask Func[edit]: do it")
    assert fewshot.LinePattern.of(match) is fewshot.LinePattern.ASK_FUNC
    assert match.group("func_name") == "edit"
    assert fewshot.LinePattern.match("just some text") is None
    with pytest.raises(ValueError):
        fewshot.LinePattern.match("Q: one\nA: two")


@pytest.mark.parametrize(
    "base_prompt", ["\nI am an agent.", "I am an agent.\n", "I am\n an agent."]
)
def test_validate_base_prompt_fails(base_prompt):
    with pytest.raises(ValueError):
        fewshot.validate_base_prompt(base_prompt)


def test_validate_base_prompt_succeeds():
    fewshot.validate_base_prompt("I am an agent.\nI answer questions.")


def test_split_few_shots():
    few_shots = """
    Q: Sample query 1
    Ask Func[simple1]: Simple argument
    Func[simple1] says: Simple response
    A: Simple final response

    Q: Sample query 2
    A: Simple final response
    """
    assert [fewshot.strip_prompt_lines(s) for s in fewshot.split_few_shots(few_shots)] == [
        """Q: Sample query 1
Ask Func[simple1]: Simple argument
Func[simple1] says: Simple response
A: Simple final response""",
        """Q: Sample query 2
A: Simple final response""",
    ]


def test_strip_prompt_lines():
    assert fewshot.strip_prompt_lines("\n  Q: hi  \n\tA: hello\n\n") == "Q: hi\nA: hello"
