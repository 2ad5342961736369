"""Fan-out of per-lead queries into a single BrainData snapshot."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, Optional, TYPE_CHECKING

from command_center.infra.config import config
from command_center.infra.error_handler import (
    CommandCenterError,
    NotFound,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from command_center.infra.metrics import brain_data_fetches_total, brain_data_duration
from command_center.infra.validation import validate_lead_id
from command_center.models.brain import BrainData

if TYPE_CHECKING:
    from command_center.services.tenants.base import TenantService

logger = logging.getLogger("command_center.brain_data")


async def fan_out(
    queries: Dict[str, Awaitable[Any]],
    timeout: Optional[float] = None,
    agent_id: Optional[str] = None,
    lead_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run independent named queries concurrently.

    All queries must succeed. On the first failure, or when ``timeout``
    elapses, the outstanding queries are cancelled and a single error is
    raised naming the sub-query.

    Returns:
        Results keyed by query name
    """
    tasks = {name: asyncio.ensure_future(coro) for name, coro in queries.items()}
    names = {task: name for name, task in tasks.items()}
    try:
        done, pending = await asyncio.wait(
            tasks.values(), timeout=timeout, return_when=asyncio.FIRST_EXCEPTION
        )
    except BaseException:
        for task in tasks.values():
            task.cancel()
        raise

    failed = [task for task in tasks.values() if task in done and not task.cancelled() and task.exception()]
    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    if failed:
        # Earliest-declared failed sub-query wins when several finished together
        task = failed[0]
        raise _with_context(task.exception(), names[task], agent_id, lead_id) from task.exception()

    if pending:
        outstanding = sorted(names[task] for task in pending)
        raise UpstreamTimeout(
            f"Timed out after {timeout}s waiting for {', '.join(outstanding)}",
            agent_id=agent_id,
            lead_id=lead_id,
            sub_query=outstanding[0],
        )

    return {name: task.result() for name, task in tasks.items()}


def _with_context(
    error: BaseException, sub_query: str, agent_id: Optional[str], lead_id: Optional[str]
) -> CommandCenterError:
    if isinstance(error, CommandCenterError):
        error.agent_id = error.agent_id or agent_id
        error.lead_id = error.lead_id or lead_id
        error.sub_query = sub_query
        return error
    return UpstreamUnavailable(
        f"{sub_query} failed: {error}", agent_id=agent_id, lead_id=lead_id, sub_query=sub_query
    )


class BrainDataAggregator:
    """Assembles BrainData for one (agent, lead) pair from a tenant service."""

    def __init__(self, default_timeout: Optional[float] = config.BRAIN_DATA_TIMEOUT_SECONDS):
        self.default_timeout = default_timeout

    async def get_brain_data(
        self,
        service: "TenantService",
        lead_id: str,
        timeout: Optional[float] = None,
    ) -> BrainData:
        """
        Fetch and merge a lead's chat history, sessions, notes and memory.

        Raises:
            InvalidInput: lead_id empty or malformed (before any I/O)
            NotFound: lead unknown to the tenant
            UpstreamUnavailable: a sub-query failed
            UpstreamTimeout: the deadline elapsed
        """
        agent_id = service.agent_id
        lead_id = validate_lead_id(lead_id, agent_id=agent_id)
        timeout = self.default_timeout if timeout is None else timeout

        start_time = time.time()
        try:
            results = await fan_out(
                {
                    "lead": service.fetch_lead(lead_id),
                    "chat_messages": service.fetch_chat_messages(lead_id),
                    "chat_sessions": service.fetch_chat_sessions(lead_id),
                    "notes": service.fetch_notes(lead_id),
                    "memory": service.fetch_memory(lead_id),
                },
                timeout=timeout,
                agent_id=agent_id,
                lead_id=lead_id,
            )
            if results["lead"] is None:
                raise NotFound(
                    f"Lead {lead_id} not found for {agent_id}",
                    agent_id=agent_id,
                    lead_id=lead_id,
                    sub_query="lead",
                )
        except CommandCenterError as e:
            brain_data_fetches_total.labels(agent_id=agent_id, status=e.category.value).inc()
            logger.warning("Brain data fetch failed", extra={**e.context(), "error": e.message})
            raise
        finally:
            brain_data_duration.labels(agent_id=agent_id).observe(time.time() - start_time)

        notes = results["notes"] or {}
        brain = BrainData(
            chat_messages=results["chat_messages"],
            chat_sessions=results["chat_sessions"],
            reasoning=notes.get("reasoning"),
            sentiment=notes.get("sentiment"),
            problem=notes.get("problem"),
            negotiation_state=notes.get("negotiation_state"),
            memory_snapshot=results["memory"],
        )
        brain_data_fetches_total.labels(agent_id=agent_id, status="success").inc()
        logger.debug(
            "Brain data assembled",
            extra={
                "agent_id": agent_id,
                "lead_id": lead_id,
                "chat_messages": len(brain.chat_messages),
                "chat_sessions": len(brain.chat_sessions),
            },
        )
        return brain
