from typing import List, Optional, Union

from fixie_agents import agent_base
from fixie_agents import fewshot
from fixie_agents import llm_settings
from fixie_agents import metadata
from fixie_agents import oauth


class CodeShotAgent(agent_base.AgentBase):
    """A CodeShot agent.

    To make a CodeShot agent, simply pass a BASE_PROMPT and FEW_SHOTS:

        BASE_PROMPT = "A summary of what this agent does; how it does it; and its
        personality"

        FEW_SHOTS = '''
        Q: <Sample query that this agent supports>
        A: <Desired response for this query>

        Q: <Another sample query>
        A: <Desired response for this query>
        '''

        agent = CodeShotAgent(BASE_PROMPT, FEW_SHOTS)

    You can have FEW_SHOTS as a single string of all your few-shots separated by 2 new
    lines, or as an explicit list of one few-shot per index.

    Your few-shots may reach out to other Agents in the fixie ecosystem by
    "Ask Agent[agent_id]: <query to pass>", or to your own python functions by
    "Ask Func[func_name]: <query to pass>". Register those functions with
    `@agent.register_func`:

        @agent.register_func
        def func_name(query: fixie_agents.Message) -> ReturnType:
            ...

    where ReturnType is one of `str`, `fixie_agents.Message`, or
    `fixie_agents.AgentResponse`. Call `agent.validate()` once all funcs are
    registered.
    """

    def __init__(
        self,
        base_prompt: str,
        few_shots: Union[str, List[str]],
        conversational: bool = False,
        agent_id: Optional[str] = None,
        oauth_params: Optional[oauth.OAuthParams] = None,
        llm_settings: Optional[llm_settings.LlmSettings] = None,
    ):
        super().__init__(agent_id, oauth_params)

        if isinstance(few_shots, str):
            few_shots = fewshot.split_few_shots(few_shots)

        self.base_prompt = fewshot.strip_prompt_lines(base_prompt)
        self.few_shots = [fewshot.strip_prompt_lines(shot) for shot in few_shots]
        self.conversational = conversational
        self.llm_settings = llm_settings

    def metadata(self) -> metadata.Metadata:
        return metadata.CodeShotAgentMetadata(
            self.base_prompt,
            self.few_shots,
            self.conversational,
            self.llm_settings,
        )

    def validate(self):
        """Checks the base prompt and every few-shot.

        Raises:
            ValueError: a prompt is malformed or asks for an unregistered Func.
        """
        fewshot.validate_base_prompt(self.base_prompt)
        for shot in self.few_shots:
            fewshot.validate_few_shot(
                shot, self.conversational, self.is_valid_func_name
            )
