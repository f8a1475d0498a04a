"""Agent listing for the agents view."""

import logging

from .core import Agent
from .gateway import GatewayClient, GatewayError
from .normalize import normalize_agents

logger = logging.getLogger(__name__)


async def fetch_agents(gateway: GatewayClient) -> list[Agent]:
    """Fetch configured agents; gateway failures yield an empty list.

    More than one agent may come back flagged as default. That is passed
    through unchanged.
    """
    try:
        payload = await gateway.agents_list()
    except GatewayError as e:
        logger.error("Failed to fetch agents: %s", e)
        return []
    return normalize_agents(payload)
