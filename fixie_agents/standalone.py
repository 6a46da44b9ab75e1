from typing import Callable, Iterator, List, Optional

from fixie_agents import agent_base
from fixie_agents import agent_func
from fixie_agents import api
from fixie_agents import metadata
from fixie_agents import oauth


class StandaloneAgent(agent_base.AgentBase):
    """An agent that handles queries directly.

    To make a StandaloneAgent, pass a function with the following signature

    def handle(query: fixie_agents.Message) -> ReturnType:
            ...

    where ReturnType is one of `str`, `fixie_agents.Message`,
    `fixie_agents.AgentResponse`, or a generator of those to stream several
    responses.
    """

    def __init__(
        self,
        handle_message: Callable,
        sample_queries: Optional[List[str]] = None,
        agent_id: Optional[str] = None,
        oauth_params: Optional[oauth.OAuthParams] = None,
    ):
        super().__init__(agent_id, oauth_params)

        if isinstance(handle_message, agent_func.AgentFunc):
            self._handle_message = handle_message
        else:
            self._handle_message = agent_func.AgentFunc.create(
                handle_message,
                oauth_params,
                self.agent_id,
                default_message_type=api.Message,
                allow_generator=True,
            )
        self._sample_queries = sample_queries

    def metadata(self) -> metadata.Metadata:
        return metadata.StandaloneAgentMetadata(sample_queries=self._sample_queries)

    def validate(self):
        pass

    def handle_query(self, query: api.AgentQuery) -> Iterator[api.AgentResponse]:
        """Yields the responses of the `handle_message` function to `query`."""
        return self._handle_message(query)
