"""
The allocation oracle.

The oracle is any async callable taking an AllocationRequest and returning
the decoded JSON answer. The production oracle asks an OpenAI model to break
the task into study blocks placed inside the free windows; tests plug in
stubs returning canned allocations.
"""
from __future__ import annotations

import json
import logging
import os
import typing as t

from openai import AsyncOpenAI, OpenAIError

from planner_engine.config import ORACLE_TIMEOUT, PLANNER_ORACLE_MODEL
from planner_engine.errors import InvalidAllocation, OracleInvocationError, PlannerError
from planner_engine.models import AllocationRequest
from prompts import load_prompt

logger = logging.getLogger(__name__)

AllocationOracle = t.Callable[[AllocationRequest], t.Awaitable[t.Any]]


class OpenAIAllocationOracle:
    """Allocation oracle backed by the OpenAI chat completions API in JSON mode."""

    def __init__(
            self,
            client: t.Optional[AsyncOpenAI] = None,
            model: str = PLANNER_ORACLE_MODEL,
            timeout: float = ORACLE_TIMEOUT,
    ) -> None:
        if client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise RuntimeError("OPENAI_API_KEY environment variable is not set.")
            client = AsyncOpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.timeout = timeout
        self.system_prompt = load_prompt("allocation_oracle_system_prompt")

    async def __call__(self, request: AllocationRequest) -> dict[str, t.Any]:
        logger.info(
            "Requesting allocation of %d minutes from %s", request.total_minutes_required, self.model
        )
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": json.dumps(request.to_oracle_payload(), indent=2)},
                ],
                timeout=self.timeout,
            )
        except OpenAIError as e:
            raise OracleInvocationError(f"Allocation oracle call failed: {e}") from e

        content = completion.choices[0].message.content
        if not content:
            raise InvalidAllocation("Empty response from allocation oracle")
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidAllocation(f"Invalid JSON response from allocation oracle: {e}") from e


async def invoke_oracle(oracle: AllocationOracle, request: AllocationRequest) -> t.Any:
    """Calls ``oracle``, reporting any non-planner failure as OracleInvocationError."""
    try:
        return await oracle(request)
    except PlannerError:
        raise
    except Exception as e:
        raise OracleInvocationError(f"Allocation oracle call failed: {e}") from e
