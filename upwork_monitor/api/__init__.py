from .rotation import TokenRotationExecutor
from .tokens import TokenSource
from .transport import GraphQLTransport
from .upwork import UpworkClient, job_from_search_result

from upwork_monitor.config import MonitorConfig
from upwork_monitor.cookies import CookieStore
from upwork_monitor.state import StateManager

__all__ = [
    "GraphQLTransport", "TokenRotationExecutor", "TokenSource",
    "UpworkClient", "job_from_search_result", "build_client",
]


def build_client(config: MonitorConfig, cookie_store: CookieStore, state: StateManager) -> UpworkClient:
    transport = GraphQLTransport(config.graphql_endpoint, timeout=config.request_timeout)
    tokens = TokenSource(cookie_store, config.token_rules)
    executor = TokenRotationExecutor(tokens, state, config.cookie_domain)
    return UpworkClient(config, transport, executor)
